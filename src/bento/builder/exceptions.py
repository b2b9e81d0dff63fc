class BentoError(Exception):
    pass


class ConfigError(BentoError):
    pass


class MetadataFileError(ConfigError):
    pass


class GitError(BentoError):
    pass


class TransportError(BentoError):
    pass


class TooManyRedirects(TransportError):
    pass


class BuildError(BentoError):
    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
