"""Provider-specific exceptions."""


class ProviderError(Exception):
    """Base class for failures talking to an agent endpoint."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(detail)


class ProviderHTTPError(ProviderError):
    """The endpoint answered with a non-success status code."""

    def __init__(self, provider: str, status_code: int, body: str, endpoint: str = ""):
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        super().__init__(provider, f"API returned status {status_code}: {body}")


class ProviderResponseError(ProviderError):
    """The endpoint answered, but the body lacked the expected shape."""
