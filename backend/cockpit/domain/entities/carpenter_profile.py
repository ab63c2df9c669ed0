"""Domain entity for the operator (carpenter) profile — one per device."""

from dataclasses import dataclass, field


@dataclass
class CarpenterProfile:
    """Operator identity, credit balance and third-party integration credentials."""

    email: str
    name: str = ""
    business_name: str = ""
    credits: int = 0
    is_admin: bool = False
    integrations: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CreditPack:
    """A credit bundle offered by the (simulated) credit store."""

    id: str
    name: str
    credits: int
    price: str
    bonus: str = ""


CREDIT_PACKS: tuple[CreditPack, ...] = (
    CreditPack(id="start", name="Pack Bronze", credits=10, price="R$ 49", bonus="Entrada Facilitada"),
    CreditPack(id="pro", name="Pack Prata", credits=50, price="R$ 189", bonus="+5 Créditos Bônus"),
    CreditPack(id="expert", name="Pack Ouro", credits=150, price="R$ 399", bonus="+20 Créditos Bônus"),
)
