from ninjaxcode.config import BuildSystem, Options
from ninjaxcode.errors import (
    ConfigurationError,
    GenerationError,
    GraphConsistencyError,
    OutputWriteError,
    PathResolutionError,
)
