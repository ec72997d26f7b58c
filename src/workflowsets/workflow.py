# Copyright (c) Syntropy Systems
"""Default composition of a preprocessor and a model spec."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from typing_extensions import TypeAlias

from workflowsets.errors import IncompatibleCombination

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class Compatibility:
    """Answer of a compatibility hook for one preprocessor/model pair."""

    compatible: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> Compatibility:
        return cls(compatible=True)

    @classmethod
    def incompatible(cls, reason: str) -> Compatibility:
        return cls(compatible=False, reason=reason)


CompatibilityCheck: TypeAlias = Callable[[Any, Any], Compatibility]
Composer: TypeAlias = Callable[[Any, Any], Any]


def check_compatibility(preprocessor: Any, model: Any) -> Compatibility:
    """Ask the preprocessor whether it can feed the model.

    Preprocessors without a ``check_compatibility`` method are assumed to
    be compatible with every model.
    """
    hook = getattr(preprocessor, "check_compatibility", None)
    if hook is None:
        return Compatibility.ok()
    answer = hook(model)
    if isinstance(answer, Compatibility):
        return answer
    if answer is True or answer is None:
        return Compatibility.ok()
    if answer is False:
        return Compatibility.incompatible("incompatible")
    return Compatibility.incompatible(str(answer))


def _tunable(part: Any) -> list[str]:
    getter = getattr(part, "tunable_parameters", None)
    if getter is None:
        return []
    return list(getter())


def _update(part: Any, values: Mapping[str, Any]) -> Any:
    if not values:
        return part
    return part.update(**values)


@dataclass(frozen=True)
class Workflow:
    """A preprocessor and model spec composed into one unit."""

    preprocessor: Any
    model: Any

    def tunable_parameters(self) -> list[str]:
        """Return names of parameters still marked for tuning."""
        return _tunable(self.preprocessor) + _tunable(self.model)

    def finalize(self, params: Mapping[str, Any]) -> Workflow:
        """Return a new workflow with tunable parameters bound to values."""
        prep_names = set(_tunable(self.preprocessor))
        model_names = set(_tunable(self.model))
        prep_values = {k: v for k, v in params.items() if k in prep_names}
        model_values = {k: v for k, v in params.items() if k in model_names}
        return Workflow(
            preprocessor=_update(self.preprocessor, prep_values),
            model=_update(self.model, model_values),
        )

    def fit(self, data: Any) -> FittedWorkflow:
        """Fit the preprocessor (when it can be fit) and the model on data."""
        prep = self.preprocessor
        if hasattr(prep, "fit"):
            transformer = prep.fit(data)
            prepared = transformer.transform(data)
        elif callable(prep):
            transformer = prep
            prepared = prep(data)
        else:
            transformer = None
            prepared = data
        return FittedWorkflow(self, transformer, self.model.fit(prepared))


@dataclass(frozen=True)
class FittedWorkflow:
    """Trained workflow handed to metric functions."""

    workflow: Workflow
    transformer: Any
    fitted_model: Any

    def prepare(self, data: Any) -> Any:
        """Apply the trained preprocessing to new data."""
        if self.transformer is None:
            return data
        if hasattr(self.transformer, "transform"):
            return self.transformer.transform(data)
        return self.transformer(data)

    def predict(self, data: Any) -> Any:
        return self.fitted_model.predict(self.prepare(data))


def compose_workflow(preprocessor: Any, model: Any) -> Workflow:
    """Compose a preprocessor and model, rejecting a missing model."""
    if model is None:
        msg = "model spec is missing"
        raise IncompatibleCombination(msg)
    return Workflow(preprocessor=preprocessor, model=model)
