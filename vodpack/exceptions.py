"""Custom exceptions for the vodpack transcoding pipeline"""

class VodpackError(Exception):
    """Base exception for all vodpack errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")

class ProbeDegraded(VodpackError):
    """Duration could not be determined; the job continues with 0 seconds"""
    def __init__(self, message: str, module: str = "ffprobe"):
        super().__init__(f"Probe degraded: {message}", module)

class ThumbnailFailed(VodpackError):
    """Poster extraction failed; the job continues without a thumbnail"""
    def __init__(self, cause: str, module: str = "thumbnail"):
        self.cause = cause
        super().__init__(f"Thumbnail failed: {cause}", module)

class EncodeFailed(VodpackError):
    """A single tier could not be encoded"""
    def __init__(self, tier, cause: str, module: str = "rendition"):
        self.tier = tier
        self.cause = cause
        super().__init__(f"Encoding {tier.label} failed: {cause}", module)

class DirectoryError(VodpackError):
    """Output directory could not be created or written"""

class JobCancelled(VodpackError):
    """Work stopped because the job was cancelled or its deadline passed"""
    def __init__(self, reason: str = "cancelled", module: str = "pipeline"):
        self.reason = reason
        super().__init__(f"Job cancelled: {reason}", module)

class CommandExecutionError(VodpackError):
    """External command exited with an error"""
    def __init__(self, message: str, exit_code: int = 0, output: str = "", module: str = "process"):
        self.exit_code = exit_code
        self.output = output
        super().__init__(message, module)

class StateError(VodpackError):
    """Illegal job state transition or double-recorded result"""

class RequestError(VodpackError, ValueError):
    """Invalid job request (tiers, identifiers, limits)"""

class DependencyError(VodpackError):
    """Missing required dependencies"""

class JobFailed(VodpackError):
    """Aggregate error for a job that finished FAILED"""
    def __init__(self, errors: list, module: str = "pipeline"):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors) or "no tier succeeded"
        super().__init__(f"Transcode job failed: {details}", module)
