from runpack.core.errors import RunpackError


class ConfigError(RunpackError):
    pass


class ConfigVersionError(ConfigError):
    pass


class ConfigValidationError(ConfigError):
    pass


class ConfigExecutionError(ConfigError):
    pass


class StepNotFoundError(ConfigError):
    pass
