# Errors raised while generating a project. Generation is a pure function of
# its inputs so none of these are retried: the first one aborts the run.


class GenerationError(Exception):
    pass


# Malformed user supplied options, e.g. a bad filter pattern.
class ConfigurationError(GenerationError, ValueError):
    pass


# The build graph contradicts what the generator needs (missing host
# application, missing link tool, unknown dependency, cycle).
class GraphConsistencyError(GenerationError, RuntimeError):
    pass


# A computed output path cannot be resolved against the source root.
class PathResolutionError(GenerationError, ValueError):
    pass


# Writing one of the generated files failed.
class OutputWriteError(GenerationError, OSError):
    pass
