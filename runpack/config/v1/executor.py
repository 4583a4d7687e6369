import pydantic

from loguru import logger

from runpack.config.common import ConfigExecutionError
from runpack.config.utils import Storage
from runpack.config.v1.schema import Config, PipeItem
from runpack.config.v1.steps import STEPS_REGISTRY, StepResult
from runpack.config.v1.validator import Validator
from runpack.core.report import PipelineReport


class Executor:
    def __init__(self, config: Config) -> None:
        self.config = Validator(config).validate()

    def _execute_global_define(self) -> None:
        for item in self.config.define:
            item.process()

    def _execute_item(self, item: PipeItem) -> list[PipelineReport]:
        step = STEPS_REGISTRY[item.name]

        for define_item in item.define:
            define_item.process()

        try:
            args = step.args.model_validate(item.rendered_args())
        except pydantic.ValidationError as e:
            raise ConfigExecutionError(f"invalid arguments of \"{item.name}\": {e}") from e

        logger.info(f"running {item.name}")
        result: StepResult = step.run(args)

        if result is None:
            return []

        return result if isinstance(result, list) else [result]

    def _execute_pipe(self) -> None:
        storage = Storage()
        failed_steps = []

        for item in self.config.pipe:
            if item.skip:
                logger.info(f"skipping {item.name}")
                continue

            reports = self._execute_item(item)

            for report in reports:
                logger.info(report.summary())
                for result in report.failed:
                    logger.error(str(result))

            if any(not report.ok for report in reports):
                failed_steps.append(item.name)

            if item.store_result_at:
                storage.pool[item.store_result_at] = "\n".join(report.summary() for report in reports)

        if failed_steps:
            raise ConfigExecutionError(f"steps finished with failed targets: {', '.join(failed_steps)}")

    def execute(self) -> None:
        self._execute_global_define()
        self._execute_pipe()
