import enum

import jinja2

from pydantic import BaseModel, field_validator

from runpack.config.common import ConfigExecutionError
from runpack.config.utils import CmdBuilder, Storage


def render(value: str) -> str:
    """
    Render a jinja template against the defined variables
    """
    tmpl = jinja2.Environment(loader=jinja2.BaseLoader()).from_string(value)
    return tmpl.render(**Storage().pool)


class DefineValueMode(enum.StrEnum):
    JINJA = "jinja"
    MANUAL = "manual"
    SHELL = "shell"


class DefineItem(BaseModel):
    """
    Schema for variables define

    name - variable name
    value - variable value
    mode - value variable interpretation mode
    """
    name: str
    value: str
    mode: DefineValueMode = DefineValueMode.JINJA

    def process(self) -> None:
        """
        execute define item at config file by mode of interpretation

        allowed modes:
            - JINJA: resolve like jinja variable
            - SHELL: resolve like shell command result (rendered with jinja first)
            - MANUAL: resolve like value that pass the user
        """
        storage = Storage()

        match self.mode:
            case DefineValueMode.JINJA:
                storage.pool[self.name] = render(self.value)
            case DefineValueMode.SHELL:
                proc = CmdBuilder(render(self.value)).build()
                stdout, stderr = proc.communicate()
                if proc.returncode != 0:
                    raise ConfigExecutionError(f"value \"{self.value}\" exec is "
                                               f"failed: {stderr.decode()}")

                storage.pool[self.name] = stdout.decode().strip()
            case DefineValueMode.MANUAL:
                storage.pool[self.name] = self.value


class PipeItem(BaseModel):
    """
    Schema for pipe step

    name - name of the step to execute with its version (e.g. `fetch-runtimes@1`)
    args - arguments that will be passed to the step, values are jinja templates
    define - variables define
    skip - step will be skipped if True
    store_result_at - store step summary at defined variable
    """
    name: str
    args: dict[str, str] = {}
    define: list[DefineItem] = []
    skip: bool = False
    store_result_at: str | None = None

    @field_validator("name")
    @classmethod
    def name_must_contain_version(cls, v: str) -> str:  # noqa: VNE001
        """
        name format example: assemble@1
        """
        try:
            step, version = v.split("@")
            int(version)
        except ValueError:
            raise ValueError(f"step name must look like <step>@<version>: \"{v}\"")

        return v

    def rendered_args(self) -> dict[str, str]:
        return {name: render(value) for name, value in self.args.items()}


class Config(BaseModel):
    version: int
    define: list[DefineItem] = []
    pipe: list[PipeItem]
