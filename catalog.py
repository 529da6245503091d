"""Named actions the planner can request.

Each action declares its arguments as a small tagged description::

    {"selector": {"type": "string", "required": True},
     "max_chars": {"type": "integer", "default": 2000}}

and the catalog turns that into a pydantic model. Arguments coming back from
the planner are validated and coerced into that model once, before the
handler runs, so handlers only ever see clean keyword arguments.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Type

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationError, create_model


FIELD_TYPES: Dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "url": AnyHttpUrl,
}


class ArgumentValidationError(ValueError):
    """Arguments did not match the action's declared parameters."""


class _ArgumentsBase(BaseModel):
    # unknown keys from the planner are dropped rather than rejected
    model_config = ConfigDict(extra="ignore")


def _build_arguments_model(action_name: str, parameters: Dict[str, Dict[str, Any]]) -> Type[BaseModel]:
    fields: Dict[str, Any] = {}
    for param_name, param in parameters.items():
        type_name = param.get("type", "string")
        if type_name not in FIELD_TYPES:
            raise ValueError(f"Action '{action_name}' parameter '{param_name}' has unsupported type '{type_name}'.")
        python_type = FIELD_TYPES[type_name]
        description = param.get("description")
        if "default" in param:
            fields[param_name] = (python_type, Field(default=param["default"], description=description))
        elif param.get("required", False):
            fields[param_name] = (python_type, Field(..., description=description))
        else:
            fields[param_name] = (Optional[python_type], Field(default=None, description=description))

    model_name = "".join(part.capitalize() for part in action_name.split("_")) + "Arguments"
    return create_model(model_name, __base__=_ArgumentsBase, **fields)


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(problems)


@dataclass
class ActionSpec:
    name: str
    description: str
    handler: Callable[..., Any]
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    arguments_model: Type[BaseModel] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.arguments_model = _build_arguments_model(self.name, self.parameters)

    def validate(self, arguments: Optional[Mapping[str, Any]]) -> BaseModel:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise ArgumentValidationError(f"expected an object of arguments, got {type(arguments).__name__}")
        try:
            return self.arguments_model.model_validate(dict(arguments))
        except ValidationError as exc:
            raise ArgumentValidationError(_format_validation_error(exc)) from exc

    def invoke(self, arguments: BaseModel) -> Any:
        return self.handler(**arguments.model_dump(mode="json"))

    def tool_schema(self) -> Dict[str, Any]:
        parameters = self.arguments_model.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ActionCatalog:
    def __init__(self, specs: Optional[List[ActionSpec]] = None):
        self._specs: Dict[str, ActionSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ActionSpec) -> ActionSpec:
        if spec.name in self._specs:
            raise ValueError(f"Action '{spec.name}' is already registered.")
        self._specs[spec.name] = spec
        return spec

    def action(self, name: str, description: str, parameters: Optional[Dict[str, Dict[str, Any]]] = None):
        """Decorator form of ``register``."""

        def decorator(handler: Callable[..., Any]) -> Callable[..., Any]:
            self.register(ActionSpec(name=name, description=description, handler=handler, parameters=parameters or {}))
            return handler

        return decorator

    def get(self, name: str) -> Optional[ActionSpec]:
        return self._specs.get(name)

    def names(self) -> List[str]:
        return list(self._specs)

    def schemas(self) -> List[Dict[str, Any]]:
        return [spec.tool_schema() for spec in self._specs.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(list(self._specs.values()))

    def __len__(self) -> int:
        return len(self._specs)
