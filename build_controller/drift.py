"""
Drift detection between the deployed and the freshly generated trigger template.

The templates cannot be compared with plain equality: the observed one carries
server-populated metadata, and its resource templates are raw JSON that a
different serializer may have written with other key order or formatting.
Comparison is therefore structural and driven by declarative options:

- an ignore set of (model class, field) pairs that never count as drift
- comparers keyed by value type, e.g. numeric equivalence for quantities

The check runs in two stages. The templates themselves are compared first with
the raw payloads ignored; only when they match is the first resource template
decoded on both sides and the embedded PipelineRuns compared.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from .errors import PayloadDecodeError
from .resources import (
    PipelineRun,
    Quantity,
    TriggerResourceTemplate,
    TriggerTemplate,
    quantities_equal,
)

Comparer = Callable[[Any, Any], bool]


@dataclass(frozen=True)
class Difference:
    """One field that differs between the observed and expected objects."""

    path: str
    observed: Any
    expected: Any

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.observed!r} != {self.expected!r}"


@dataclass(frozen=True)
class DiffOptions:
    """What to skip and how to compare special value types."""

    ignore: FrozenSet[Tuple[Type[BaseModel], str]] = frozenset()
    comparers: Mapping[type, Comparer] = field(default_factory=dict)

    def is_ignored(self, model_type: type, field_name: str) -> bool:
        return any((klass, field_name) in self.ignore for klass in model_type.__mro__)

    def comparer_for(self, value: Any) -> Optional[Comparer]:
        for value_type, comparer in self.comparers.items():
            if isinstance(value, value_type):
                return comparer
        return None


TRIGGER_TEMPLATE_DIFF_OPTIONS = DiffOptions(
    ignore=frozenset(
        {
            (TriggerTemplate, "api_version"),
            (TriggerTemplate, "kind"),
            (TriggerTemplate, "metadata"),
            (TriggerResourceTemplate, "raw"),
        }
    ),
    comparers={Quantity: quantities_equal},
)

PIPELINE_RUN_DIFF_OPTIONS = DiffOptions(comparers={Quantity: quantities_equal})


def diff(observed: Any, expected: Any, options: DiffOptions, path: str = "") -> List[Difference]:
    """Structurally compare two values and list every difference found."""
    if observed is None or expected is None:
        if observed is expected:
            return []
        return [Difference(path, observed, expected)]

    comparer = options.comparer_for(observed)
    if comparer is not None and options.comparer_for(expected) is comparer:
        return [] if comparer(observed, expected) else [Difference(path, observed, expected)]

    if type(observed) is not type(expected):
        return [Difference(path, observed, expected)]

    if isinstance(observed, BaseModel):
        differences: List[Difference] = []
        model_type = type(observed)
        for field_name in model_type.model_fields:
            if options.is_ignored(model_type, field_name):
                continue
            differences.extend(
                diff(
                    getattr(observed, field_name),
                    getattr(expected, field_name),
                    options,
                    f"{path}.{field_name}",
                )
            )
        # Undeclared fields, kept raw under their wire names.
        observed_extra = observed.model_extra or {}
        expected_extra = expected.model_extra or {}
        for key in sorted(set(observed_extra) | set(expected_extra)):
            if options.is_ignored(model_type, key):
                continue
            differences.extend(
                diff(observed_extra.get(key), expected_extra.get(key), options, f"{path}.{key}")
            )
        return differences

    if isinstance(observed, (list, tuple)):
        if len(observed) != len(expected):
            return [Difference(f"{path}.length", len(observed), len(expected))]
        differences = []
        for index, (left, right) in enumerate(zip(observed, expected)):
            differences.extend(diff(left, right, options, f"{path}[{index}]"))
        return differences

    if isinstance(observed, dict):
        differences = []
        for key in sorted(set(observed) | set(expected), key=str):
            key_path = f"{path}[{key!r}]"
            if key not in observed or key not in expected:
                differences.append(Difference(key_path, observed.get(key), expected.get(key)))
                continue
            differences.extend(diff(observed[key], expected[key], options, key_path))
        return differences

    if observed != expected:
        return [Difference(path, observed, expected)]
    return []


def decode_pipeline_run(template: TriggerResourceTemplate) -> PipelineRun:
    """
    Deserialize a resource template payload.

    Raises:
        PayloadDecodeError: The payload is not JSON or not a PipelineRun.
    """
    try:
        payload = json.loads(template.raw)
    except ValueError as e:
        raise PayloadDecodeError(f"resource template is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise PayloadDecodeError(
            f"resource template must be a JSON object, got {type(payload).__name__}"
        )
    try:
        return PipelineRun.model_validate(payload)
    except ValidationError as e:
        raise PayloadDecodeError(f"resource template is not a PipelineRun: {e}") from e


@dataclass
class DriftReport:
    """Outcome of a drift check, with the differences that caused it."""

    stage: Optional[str] = None
    differences: List[Difference] = field(default_factory=list)

    @property
    def drifted(self) -> bool:
        return bool(self.differences)

    def describe(self) -> str:
        return "\n".join(str(difference) for difference in self.differences)


def detect_drift(existing: TriggerTemplate, expected: TriggerTemplate) -> DriftReport:
    """
    Compare the deployed trigger template with the expected one.

    Neither argument is modified.

    Raises:
        PayloadDecodeError: A resource template payload could not be decoded.
    """
    differences = diff(existing, expected, TRIGGER_TEMPLATE_DIFF_OPTIONS)
    if differences:
        return DriftReport(stage="trigger_template", differences=differences)

    if not existing.spec.resource_templates:
        # Both sides have no payload to decode; counts already matched.
        return DriftReport()

    existing_run = decode_pipeline_run(existing.spec.resource_templates[0])
    expected_run = decode_pipeline_run(expected.spec.resource_templates[0])

    differences = diff(existing_run, expected_run, PIPELINE_RUN_DIFF_OPTIONS)
    if differences:
        return DriftReport(stage="trigger_resource_template", differences=differences)
    return DriftReport()


def is_new_build_required(existing: TriggerTemplate, expected: TriggerTemplate) -> bool:
    """True when the deployed trigger template no longer matches the expected one."""
    return detect_drift(existing, expected).drifted
