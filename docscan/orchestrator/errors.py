ERROR_DOMAIN = "docscan.scanner"

# Scanner failure codes, delivered inside ScanError
ERR_NO_CAMERA = 1
ERR_RECOGNIZE = 2

# Service-level codes, reported by the HTTP layer only
ERR_BUSY = "busy"
ERR_TIMEOUT = "timeout"
ERR_DECODE = "decode_failed"
ERR_BAD_GEOMETRY = "bad_geometry"

MESSAGES = {
    ERR_NO_CAMERA: "Scanner unable to find camera on this device",
    ERR_RECOGNIZE: "Scanner has failed to recognize machine readable code from camera picture",
}


class ScanError(Exception):
    """Terminal failure of one capture attempt."""

    def __init__(self, code: int, message: str | None = None, domain: str = ERROR_DOMAIN):
        self.domain = domain
        self.code = code
        self.message = message or MESSAGES.get(code, "Unknown scanner error")
        super().__init__(self.message)

    def __repr__(self):
        return f"ScanError(domain={self.domain!r}, code={self.code}, message={self.message!r})"

    def __eq__(self, other):
        if not isinstance(other, ScanError):
            return NotImplemented
        return (self.domain, self.code, self.message) == (other.domain, other.code, other.message)

    def __hash__(self):
        return hash((self.domain, self.code, self.message))


def no_camera() -> ScanError:
    return ScanError(ERR_NO_CAMERA)


def recognize_failed() -> ScanError:
    return ScanError(ERR_RECOGNIZE)
