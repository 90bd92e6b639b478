# careflow/core/errors.py

class CareflowError(Exception):
    pass

class StoreUnavailable(CareflowError):
    """The backing datastore could not be reached or returned an error."""

class RequestNotFound(CareflowError):
    def __init__(self, request_id: str):
        super().__init__(f"Request {request_id} not found")
        self.request_id = request_id

class ProviderNotFound(CareflowError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider {provider_id} not found")
        self.provider_id = provider_id

class InvalidStateTransition(CareflowError):
    def __init__(self, request_id: str, src: str, dst: str):
        super().__init__(f"Request {request_id}: transition {src} -> {dst} not allowed")
        self.request_id = request_id
        self.src = src
        self.dst = dst

class NoCandidatesFound(CareflowError):
    """Zero providers matched the filters/radius. A legitimate outcome, not a failure."""

    def __init__(self, request_id: str):
        super().__init__(f"No providers available for request {request_id}")
        self.request_id = request_id

class GeocodeError(CareflowError):
    pass
