from libs.result import Error


class ClientError(Exception):
    """Use-case error surfaced to the HTTP client as {"error": {"code", "message"}}"""

    def __init__(self, error: Error, status_code: int = 400):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code
