"""
Render Node Resolution
Turns engine render nodes into everything a host needs to draw a widget.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from returns.pipeline import is_successful

from ..bridge.state import FormStateBridge
from ..components.normalizer import merge_component_props, needs_wrapper, resolve_event_mapping
from ..components.registry import ComponentRegistry
from ..components.transformers import to_component_value
from ..components.types import BaseComponentDefinition, CanonicalEvent, RuleConverter
from ..core.config import get_settings
from ..core.logging_config import get_logger
from ..handlers.events import ErrorCallback, FieldEventHandler
from ..monitoring.metrics import metrics_collector

logger = get_logger(__name__)


@dataclass
class ResolvedNode:
    """A render node with its definition, props and event bindings resolved."""

    node: Mapping[str, Any]
    kind: str
    path: str
    definition: Optional[BaseComponentDefinition]
    props: dict[str, Any] = field(default_factory=dict)
    events: dict[str, Callable[..., Any]] = field(default_factory=dict)
    visible: bool = True
    wrapper: Any = None
    wrapper_props: Optional[dict[str, Any]] = None
    children: list[Any] = field(default_factory=list)
    rows: list[Any] = field(default_factory=list)

    @property
    def render_target(self) -> Any:
        return self.definition.render_target if self.definition else None


class NodeResolver:
    """
    Resolves render nodes against a registry.

    Nodes keep the engine's identity in ``ResolvedNode.node``, so hosts can
    skip re-rendering subtrees whose node object did not change.
    """

    def __init__(
        self,
        bridge: FormStateBridge,
        registry: ComponentRegistry,
        handler: Optional[FieldEventHandler] = None,
        *,
        wrapper: Any = None,
        rule_converter: Optional[RuleConverter] = None,
        on_transform_error: Optional[ErrorCallback] = None,
    ) -> None:
        preset = registry.preset
        self.bridge = bridge
        self.registry = registry
        self.handler = handler
        self.wrapper = wrapper if wrapper is not None else (preset.wrapper if preset else None)
        self.rule_converter = rule_converter or (preset.rule_converter if preset else None)
        if on_transform_error is None and handler is not None:
            on_transform_error = handler.on_transform_error
        self.on_transform_error = on_transform_error

    def resolve_tree(self, node: Optional[Mapping[str, Any]] = None) -> Optional[ResolvedNode]:
        """Resolve the whole tree (defaults to the bridge's current render tree)."""
        if node is None:
            node = self.bridge.get_render_tree()
        return self.resolve(node)

    def resolve(self, node: Mapping[str, Any]) -> Optional[ResolvedNode]:
        """
        Resolve one node and its descendants.

        Returns:
            None when the node is not rendered (``ifShow`` false), its
            component is missing, or its value cannot be converted
        """
        computed = node.get("computed") or {}
        if computed.get("ifShow") is False:
            return None

        kind = node.get("type")
        if kind == "field":
            return self._resolve_field(node, computed)
        if kind == "list":
            return self._resolve_list(node, computed)
        if kind in ("layout", "form"):
            return self._resolve_container(node, computed)

        logger.debug("node_type_unknown", type=kind, path=node.get("path"))
        return None

    def _lookup(self, node: Mapping[str, Any]) -> Optional[BaseComponentDefinition]:
        name = node.get("component")
        definition = self.registry.get(name) if name else None
        if definition is None and get_settings().warn_on_missing_component:
            logger.warning("component_not_found", component=name, path=node.get("path"))
        return definition

    def _resolve_field(self, node: Mapping[str, Any], computed: Mapping[str, Any]) -> Optional[ResolvedNode]:
        definition = self._lookup(node)
        if definition is None:
            return None

        path = node.get("path", "")
        engine_value = self.bridge.get_snapshot().value_at(path)
        result = to_component_value(definition, engine_value, path)
        if not is_successful(result):
            self._report_transform_error(result.failure(), path, engine_value)
            return None

        props = merge_component_props(
            definition.default_props,
            node.get("componentProps"),
            {
                "value": result.unwrap(),
                "disabled": computed.get("disabled", False),
                "readonly": computed.get("readonly", False),
            },
            computed.get("componentProps"),
        )

        resolved = ResolvedNode(
            node=node,
            kind="field",
            path=path,
            definition=definition,
            props=props,
            events=self._field_events(definition, path),
            visible=computed.get("show", True),
        )

        if needs_wrapper(definition) and self.wrapper is not None:
            resolved.wrapper = self.wrapper
            resolved.wrapper_props = self._wrapper_props(node, computed, path)
        return resolved

    def _field_events(self, definition: BaseComponentDefinition, path: str) -> dict[str, Callable[..., Any]]:
        handler = self.handler
        if handler is None:
            return {}

        mapping = resolve_event_mapping(definition)
        name = definition.name
        return {
            mapping[CanonicalEvent.CHANGE.value]: lambda value: handler.handle_field_change(path, value, name),
            mapping[CanonicalEvent.FOCUS.value]: lambda event=None: handler.handle_field_focus(path, event),
            mapping[CanonicalEvent.BLUR.value]: lambda event=None: handler.handle_field_blur(path, event),
        }

    def _wrapper_props(self, node: Mapping[str, Any], computed: Mapping[str, Any], path: str) -> dict[str, Any]:
        item_props = node.get("formItemProps") or {}
        rules = self.rule_converter(node, dict(computed), self) if self.rule_converter else []
        return merge_component_props(
            {
                "label": item_props.get("label", node.get("label")),
                "name": path,
                "required": computed.get("required", False),
                "rules": rules,
                "visible": computed.get("show", True),
            },
            item_props,
            computed.get("formItemProps"),
        )

    def _resolve_list(self, node: Mapping[str, Any], computed: Mapping[str, Any]) -> ResolvedNode:
        # Lists fall back to default rendering when no component is registered
        definition = self.registry.get(node.get("component") or "list")
        path = node.get("path", "")

        value = self.bridge.get_snapshot().value_at(path)
        rows = value if isinstance(value, list) else []
        row_children = node.get("children") or []

        children = []
        for index in range(len(rows)):
            row_nodes = row_children[index] if index < len(row_children) else []
            children.append([r for r in (self.resolve(child) for child in row_nodes) if r is not None])

        events: dict[str, Callable[..., Any]] = {}
        handler = self.handler
        if handler is not None:
            events = {
                "add": lambda row=None: handler.handle_list_add(path, row),
                "remove": lambda index: handler.handle_list_remove(path, index),
                "move": lambda from_index, to_index: handler.handle_list_move(path, from_index, to_index),
            }

        props = merge_component_props(
            definition.default_props if definition else None,
            node.get("componentProps"),
            {"disabled": computed.get("disabled", False)},
            computed.get("componentProps"),
        )
        return ResolvedNode(
            node=node,
            kind="list",
            path=path,
            definition=definition,
            props=props,
            events=events,
            visible=computed.get("show", True),
            children=children,
            rows=rows,
        )

    def _resolve_container(self, node: Mapping[str, Any], computed: Mapping[str, Any]) -> Optional[ResolvedNode]:
        definition = None
        if node.get("component"):
            definition = self._lookup(node)
            if definition is None:
                return None

        kind = node["type"]
        props = merge_component_props(
            definition.default_props if definition else None,
            node.get("formProps") if kind == "form" else None,
            node.get("componentProps"),
            computed.get("componentProps"),
        )
        children = [r for r in (self.resolve(child) for child in node.get("children") or []) if r is not None]
        return ResolvedNode(
            node=node,
            kind=kind,
            path=node.get("path", ""),
            definition=definition,
            props=props,
            visible=computed.get("show", True),
            children=children,
        )

    def _report_transform_error(self, error: Exception, path: str, value: Any) -> None:
        logger.warning("field_render_suppressed", path=path)
        if self.on_transform_error is None:
            return
        try:
            self.on_transform_error(error, path, value)
        except Exception as e:
            metrics_collector.record_listener_error("error_callback")
            logger.error("error_callback_failed", path=path, error=str(e), exc_info=True)
