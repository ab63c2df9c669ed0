"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ValidationError(Exception):
    """Raised when user input fails a business rule.

    ``errors`` maps field name → message, mirroring the form feedback.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error.

    Provider-agnostic — a transient failure of the external service.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class AssistantUnavailableError(Exception):
    """Raised when no assistant credential is configured.

    Expected steady state, kept distinct from ChatProviderError.
    """

    def __init__(self, message: str = "SISTEMA_OFFLINE: chave da API do assistente ausente ou inválida."):
        super().__init__(message)


class LocalStoreUnavailableError(Exception):
    """Raised when the local store is not open or failed to open."""


class RemoteStoreError(Exception):
    """Raised when the remote document store rejects a read or write."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"[remote] {status_code}: {message}")


class RemoteAuthError(RemoteStoreError):
    """Raised when anonymous sign-in or token refresh fails."""


class InsufficientCreditsError(Exception):
    """Raised when a paid operation needs more credits than the balance holds."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Créditos Insuficientes: {required} necessário(s), {available} disponível(is).")
