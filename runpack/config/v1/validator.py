from loguru import logger

from runpack.config.common import ConfigValidationError, ConfigVersionError, StepNotFoundError
from runpack.config.v1.schema import Config
from runpack.config.v1.steps import STEPS_REGISTRY


class Validator:
    def __init__(self, config: Config) -> None:
        self.config = config

    def _validate_version(self) -> None:
        if self.config.version != 1:
            raise ConfigVersionError(f"invalid version number: \"{self.config.version}\"")

    def _validate_pipe(self) -> None:
        validate_failed = False

        for item in self.config.pipe:
            if (step := STEPS_REGISTRY.get(item.name)) is None:
                raise StepNotFoundError(f"step \"{item.name}\" not found")

            # values are templates until the defines run, only names are checked here
            fields = step.args.model_fields
            required = {name for name, field in fields.items() if field.is_required()}

            if unknown := sorted(set(item.args) - set(fields)):
                validate_failed = True
                logger.error(f"\"{item.name}\" got unknown arguments: {', '.join(unknown)}")

            if missing := sorted(required - set(item.args)):
                validate_failed = True
                logger.error(f"\"{item.name}\" misses required arguments: {', '.join(missing)}")

        if validate_failed:
            raise ConfigValidationError("validation is failed see the logs")

    def validate(self) -> Config:
        self._validate_version()
        self._validate_pipe()

        return self.config
