"""Message templates rendered against single alerts or whole alert groups.

Templates are Jinja2 source compiled once at startup. Each render mode binds
its own context:

    per alert:  Status, Labels, Annotations, StartsAt, EndsAt, GeneratorURL,
                Fingerprint
    per group:  Status, GroupLabels, CommonLabels, CommonAnnotations,
                Receiver, ExternalURL, Alerts

Alertmanager users write field references with a leading dot
(``{{ .Labels.alertname }}`` or ``{% if .Status == "firing" %}``); those are
accepted in ``{{ }}`` and ``{% %}`` blocks and rewritten to plain Jinja2 names
before compiling. Dots inside string literals are left alone.

Lookups follow Alertmanager's template semantics: ``Labels.values`` is the
label named ``values``, never the dict method, and a missing label or
annotation renders as ``<no value>``. An unknown top-level name such as
``{{ nil }}`` is a render error.

Example:
    template = MessageTemplate("Alert {{ .Labels.alertname }} is {{ .Status }}")
    result = template.render_alert(alert)
    if result.ok:
        print(result.text)
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, Undefined
from loguru import logger

from alert_relay.errors import RenderError, TemplateCompileError
from alert_relay.models import Alert, AlertGroup

_TAG_BLOCK = re.compile(r"(\{\{|\{%)(.*?)(\}\}|%\})", re.DOTALL)
_STRING_OR_LEADING_DOT = re.compile(
    r"(?P<string>\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')"
    r"|(?<![\w\]\)\}'\"])\.(?=[A-Za-z_])",
    re.DOTALL,
)


def _strip_dots_outside_strings(expression: str) -> str:
    return _STRING_OR_LEADING_DOT.sub(lambda m: m.group("string") or "", expression)


def strip_leading_dots(source: str) -> str:
    """Rewrite ``{{ .Field }}`` references to ``{{ Field }}``.

    Only dots that start a name inside an expression or statement block are
    removed; attribute access such as ``Labels.alertname`` and string
    literals are left alone.

    Args:
        source: Template source text

    Returns:
        Template source usable by Jinja2
    """
    return _TAG_BLOCK.sub(
        lambda m: m.group(1) + _strip_dots_outside_strings(m.group(2)) + m.group(3),
        source,
    )


class NoValue(Undefined):
    """A missing map key. Renders like Alertmanager's ``<no value>``."""

    __slots__ = ()

    def __str__(self) -> str:
        return "<no value>"


class AlertEnvironment(Environment):
    """Jinja2 environment resolving map keys before attributes."""

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                pass
            value = super().getattr(obj, attribute)
            if isinstance(value, Undefined):
                return NoValue(obj=obj, name=attribute)
            return value
        return super().getattr(obj, attribute)

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[argument]
            except (KeyError, TypeError):
                return NoValue(obj=obj, name=argument)
        return super().getitem(obj, argument)


@dataclass(frozen=True)
class AlertContext:
    """Values a template can reference when rendering one alert."""

    status: str
    labels: Dict[str, str]
    annotations: Dict[str, str]
    starts_at: str
    ends_at: str
    generator_url: str
    fingerprint: str

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertContext":
        return cls(
            status=alert.status,
            labels=dict(alert.labels),
            annotations=dict(alert.annotations),
            starts_at=alert.starts_at,
            ends_at=alert.ends_at,
            generator_url=alert.generator_url,
            fingerprint=alert.fingerprint,
        )

    def to_template_vars(self) -> Dict[str, Any]:
        return {
            "Status": self.status,
            "Labels": self.labels,
            "Annotations": self.annotations,
            "StartsAt": self.starts_at,
            "EndsAt": self.ends_at,
            "GeneratorURL": self.generator_url,
            "Fingerprint": self.fingerprint,
        }


@dataclass(frozen=True)
class GroupContext:
    """Values a template can reference when rendering a whole group."""

    status: str
    group_labels: Dict[str, str]
    common_labels: Dict[str, str]
    common_annotations: Dict[str, str]
    receiver: str = ""
    external_url: str = ""
    alerts: List[AlertContext] = field(default_factory=list)

    @classmethod
    def from_group(cls, group: AlertGroup) -> "GroupContext":
        return cls(
            status=group.status,
            group_labels=dict(group.group_labels),
            common_labels=dict(group.common_labels),
            common_annotations=dict(group.common_annotations),
            receiver=group.receiver,
            external_url=group.external_url,
            alerts=[AlertContext.from_alert(alert) for alert in group.alerts],
        )

    def to_template_vars(self) -> Dict[str, Any]:
        return {
            "Status": self.status,
            "GroupLabels": self.group_labels,
            "CommonLabels": self.common_labels,
            "CommonAnnotations": self.common_annotations,
            "Receiver": self.receiver,
            "ExternalURL": self.external_url,
            "Alerts": [a.to_template_vars() for a in self.alerts],
        }


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a render: either text or the error that prevented it."""

    text: Optional[str] = None
    error: Optional[RenderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MessageTemplate:
    """A compiled message template.

    The compiled template is never mutated after construction and can be
    shared by concurrent requests.
    """

    def __init__(self, source: str):
        """Compile the template.

        Args:
            source: Template source text

        Raises:
            TemplateCompileError: If the source is not a valid template
        """
        self.source = source
        env = AlertEnvironment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        try:
            self._template = env.from_string(strip_leading_dots(source))
        except TemplateSyntaxError as e:
            raise TemplateCompileError(
                f"Invalid message template (line {e.lineno}): {e.message}"
            ) from e

    def render_alert(self, alert: Alert) -> RenderResult:
        """Render the template for a single alert.

        Args:
            alert: Alert to render

        Returns:
            RenderResult holding the text, or the RenderError on failure
        """
        return self._render(AlertContext.from_alert(alert).to_template_vars())

    def render_group(self, group: AlertGroup) -> RenderResult:
        """Render the template once for a whole alert group.

        Args:
            group: Alert group to render

        Returns:
            RenderResult holding the text, or the RenderError on failure
        """
        return self._render(GroupContext.from_group(group).to_template_vars())

    def _render(self, context: Dict[str, Any]) -> RenderResult:
        try:
            return RenderResult(text=self._template.render(**context))
        except Exception as e:
            logger.debug(f"Template render failed: {type(e).__name__}: {e}")
            return RenderResult(error=RenderError(f"{type(e).__name__}: {e}"))
