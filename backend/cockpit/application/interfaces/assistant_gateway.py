"""Abstract interface (port) for the generative assistant used by the workshop."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from cockpit.domain.entities import ProjectRecord


@dataclass
class ImageInput:
    """Base64-encoded image sent to the assistant."""

    data: str
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class ImageData:
    """Image produced by the assistant."""

    data: str  # base64, without the data-URL prefix
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class Location:
    latitude: float
    longitude: float


@dataclass
class GroundingSource:
    url: str
    title: str = ""


@dataclass
class GroundedAnswer:
    text: str
    sources: list[GroundingSource] = field(default_factory=list)


@dataclass
class CostEstimate:
    material_cost: float
    labor_cost: float

    @property
    def total(self) -> float:
        return self.material_cost + self.labor_cost


class AssistantGateway(ABC):
    """Port for the external assistant — implemented in the infrastructure layer.

    ``analyze_draft`` and ``speak`` never raise. The other operations make a
    single request each and raise AssistantUnavailableError when no credential
    is configured, ChatProviderError on provider failure.
    """

    @abstractmethod
    async def analyze_draft(self, prompt: str, image: ImageInput | None = None) -> str:
        ...

    @abstractmethod
    async def speak(self, text: str) -> None:
        ...

    @abstractmethod
    async def generate_text(self, prompt: str, images: list[ImageInput] | None = None) -> str:
        ...

    @abstractmethod
    async def generate_image(self, images: list[ImageInput], prompt: str) -> ImageData:
        ...

    @abstractmethod
    async def search_grounded(self, prompt: str, location: Location | None = None) -> GroundedAnswer:
        ...

    @abstractmethod
    async def estimate_costs(self, project: ProjectRecord, market_context: str = "") -> CostEstimate:
        ...
