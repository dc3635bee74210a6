# src/circuitsim_core/parser/parser.py
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import cerberus
import pint
import yaml

from ..components.base_enums import ComponentKind, WaveformShape
from ..data_structures import AcSourceParams, Component, LedParams, LogicInputs, SwitchParams, Wire
from ..units import to_magnitude
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

#: Unit in which `value` is expressed for each kind that carries one.
VALUE_UNITS: Dict[ComponentKind, str] = {
    ComponentKind.RESISTOR: "ohm",
    ComponentKind.CAPACITOR: "farad",
    ComponentKind.INDUCTOR: "henry",
    ComponentKind.DC_SOURCE: "volt",
    ComponentKind.AC_SOURCE: "volt",
    ComponentKind.DIODE: "volt",
    ComponentKind.LED: "volt",
}

_TWO_TERMINAL_PORTS = ("1", "2")


def default_ports(kind: ComponentKind) -> Tuple[str, ...]:
    """Port names used when a snapshot omits `ports`."""
    if kind is ComponentKind.GROUND:
        return ("gnd",)
    if kind is ComponentKind.LOGIC_NOT:
        return ("A", "Y")
    if kind.is_logic_gate:
        return ("A", "B", "Y")
    return _TWO_TERMINAL_PORTS


class EnhancedValidator(cerberus.Validator):
    """Cerberus validator with the snapshot-specific rules."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['port_endpoint'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_port_endpoint(self, constraint: bool, field: str, value: Any):
        """
        Wire endpoints are written "componentId:portId".
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint or not isinstance(value, str):
            return
        component_id, sep, port_id = value.rpartition(":")
        if not sep or not component_id or not port_id:
            self._error(field, f"Endpoint '{value}' is invalid. Write wire endpoints as 'componentId:portId'.")

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = []
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is not None:
                if item_key in seen_keys:
                    duplicates.append(item_key)
                else:
                    seen_keys.add(item_key)

        if duplicates:
            unique_duplicates = sorted(set(duplicates))
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {unique_duplicates}")


class NetlistParser:
    """
    Validates an editor snapshot (a mapping, YAML text or a YAML file) and turns
    it into `Component` and `Wire` objects ready for analysis.

    Values may be plain numbers in SI base units or unit strings such as
    "1 kohm", "100 uF" or "90 deg"; pint converts them according to the kind.
    """
    _quantity_rule = {"type": ["string", "number"], "required": False, "nullable": True}
    _endpoint_rule = {"type": "string", "required": True, "empty": False, "port_endpoint": True}

    _component_schema = {
        "id": {"type": "string", "required": True, "empty": False},
        "kind": {"type": "string", "required": True, "allowed": [k.value for k in ComponentKind]},
        "ports": {"type": "list", "required": False, "minlength": 1, "schema": {"type": "string", "empty": False}},
        "value": _quantity_rule,
        # AC source extras
        "frequency": _quantity_rule,
        "phase": _quantity_rule,
        "offset": _quantity_rule,
        "waveform": {"type": "string", "required": False, "allowed": [w.value for w in WaveformShape]},
        # LED extras
        "color": {"type": "string", "required": False, "nullable": True},
        "forward_voltage": _quantity_rule,
        # Switch extras
        "closed": {"type": "boolean", "required": False},
        # Logic gate extras
        "input_a": {"type": "boolean", "required": False, "nullable": True},
        "input_b": {"type": "boolean", "required": False, "nullable": True},
    }

    _wire_schema = {
        "id": {"type": "string", "required": False, "empty": False},
        "from": _endpoint_rule,
        "to": _endpoint_rule,
    }

    _schema = {
        "name": {"type": "string", "required": False},
        "components": {
            "type": "list", "required": True, "unique_elements_by_key": "id",
            "schema": {"type": "dict", "schema": _component_schema},
        },
        "wires": {
            "type": "list", "required": False, "default": [], "unique_elements_by_key": "id",
            "schema": {"type": "dict", "schema": _wire_schema},
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.debug("NetlistParser initialized.")

    # --- Entry points ---

    def parse_file(self, path: Union[str, Path]) -> Tuple[List[Component], List[Wire]]:
        source = Path(path).resolve()
        logger.info(f"Loading circuit snapshot from: {source}")
        return self._parse(self._load_yaml(source), file_path=source)

    def parse_yaml(self, text: str) -> Tuple[List[Component], List[Wire]]:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}") from e
        return self._parse(self._check_root(content, None), file_path=None)

    def parse_dict(self, data: Dict[str, Any]) -> Tuple[List[Component], List[Wire]]:
        return self._parse(self._check_root(data, None), file_path=None)

    # --- Internals ---

    def _parse(self, content: Dict[str, Any], file_path: Optional[Path]) -> Tuple[List[Component], List[Wire]]:
        if not self._validator.validate(content):
            raise SchemaValidationError(self._validator.errors, file_path)
        document = self._validator.document

        components = [self._build_component(raw, file_path) for raw in document["components"]]
        wires = [self._build_wire(raw, index) for index, raw in enumerate(document.get("wires", []))]
        logger.info(f"Parsed snapshot with {len(components)} component(s) and {len(wires)} wire(s).")
        return components, wires

    def _build_component(self, raw: Dict[str, Any], file_path: Optional[Path]) -> Component:
        comp_id = raw["id"]
        kind = ComponentKind(raw["kind"])

        def quantity(key: str, unit: str) -> Optional[float]:
            value = raw.get(key)
            if value is None:
                return None
            try:
                return to_magnitude(value, unit)
            except (pint.PintError, ValueError) as e:
                raise ParsingError(
                    details=f"Component '{comp_id}': '{key}' value {value!r} is not a valid quantity in {unit}: {e}",
                    file_path=file_path, component_id=comp_id,
                ) from e

        value = None
        if raw.get("value") is not None:
            unit = VALUE_UNITS.get(kind)
            if unit is None:
                raise ParsingError(
                    details=f"Component '{comp_id}' of kind '{kind}' takes no value.",
                    file_path=file_path, component_id=comp_id,
                )
            value = quantity("value", unit)

        ac = led = switch = logic = None
        if kind is ComponentKind.AC_SOURCE:
            defaults = AcSourceParams()
            frequency, phase, offset = quantity("frequency", "hertz"), quantity("phase", "radian"), quantity("offset", "volt")
            ac = AcSourceParams(
                frequency=defaults.frequency if frequency is None else frequency,
                phase=defaults.phase if phase is None else phase,
                waveform=WaveformShape(raw.get("waveform", defaults.waveform.value)),
                offset=defaults.offset if offset is None else offset,
            )
        elif kind is ComponentKind.LED:
            led = LedParams(color=raw.get("color"), forward_voltage_override=quantity("forward_voltage", "volt"))
        elif kind is ComponentKind.SWITCH:
            switch = SwitchParams(closed=raw.get("closed", False))
        elif kind.is_logic_gate:
            logic = LogicInputs(input_a=raw.get("input_a"), input_b=raw.get("input_b"))

        return Component(
            id=comp_id,
            kind=kind,
            ports=tuple(raw.get("ports") or default_ports(kind)),
            value=value,
            ac=ac,
            led=led,
            switch=switch,
            logic=logic,
        )

    @staticmethod
    def _build_wire(raw: Dict[str, Any], index: int) -> Wire:
        from_component, _, from_port = raw["from"].rpartition(":")
        to_component, _, to_port = raw["to"].rpartition(":")
        return Wire(
            id=raw.get("id", f"W{index + 1}"),
            from_component=from_component,
            from_port=from_port,
            to_component=to_component,
            to_port=to_port,
        )

    @staticmethod
    def _check_root(content: Any, source: Optional[Path]) -> Dict[str, Any]:
        if content is None:
            raise ParsingError(details="The snapshot is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the snapshot must be a dictionary (mapping).", file_path=source)
        return content

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Snapshot file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        return self._check_root(content, source)
