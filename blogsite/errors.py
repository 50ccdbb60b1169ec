class BlogBuildError(Exception):
    """Base class for everything the blog builder raises on purpose."""


class MalformedFrontMatter(BlogBuildError, ValueError):
    def __init__(self, source: str, reason: str, missing: tuple[str, ...] = ()):
        self.source = source
        self.reason = reason
        self.missing = tuple(missing)
        super().__init__(f"{source}: {reason}")


class UnresolvedAsset(BlogBuildError):
    """
    An image or link in a post that points at nothing we know about.

    Collected as a warning while rendering; only raised when the build is
    told to be strict about assets.
    """

    def __init__(self, source: str, target: str, kind: str):
        self.source = source
        self.target = target
        self.kind = kind
        super().__init__(f"{source}: unresolved {kind} '{target}'")


class ManifestError(BlogBuildError, ValueError):
    pass
