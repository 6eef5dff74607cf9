"""
Presence-aware configuration updates.

Setters such as ``updateMintEconomics`` take every field at once. To change
one field the rest must be re-sent with their current on-chain values. A
field counts as provided when its name is a key of ``updates``; zero, False
and empty values are legitimate updates, never "not provided".
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..errors import ArgumentTypeMismatch
from .decoder import DecodedField, NativeAccountId, RawAddress


def current_values(
    outputs: Sequence[Mapping[str, Any]], fields: Sequence[DecodedField]
) -> dict[str, Any]:
    """
    Current values keyed by name.

    A getter returning a single struct (``getMintEconomics() returns
    (MintEconomics)``) is unpacked into its components so the names line up
    with the setter's parameters. Addresses go back to 0x form.
    """
    if len(outputs) == 1 and outputs[0].get("components") and fields:
        return flatten_struct(outputs[0], fields[0].value)
    return {f.name: _plain(f.value) for f in fields}


def flatten_struct(output: Mapping[str, Any], value: Sequence[Any]) -> dict[str, Any]:
    """Map a decoded struct onto its component names from the ABI output entry."""
    components = output.get("components") or []
    if len(components) != len(value):
        raise ArgumentTypeMismatch(
            f"Struct {output.get('name') or output.get('internalType')} has "
            f"{len(components)} components, got {len(value)} values"
        )
    return {c["name"]: _plain(v) for c, v in zip(components, value)}


def select_setter(
    candidates: Sequence[Mapping[str, Any]],
    current: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> Mapping[str, Any]:
    """
    Pick the setter overload the update applies to.

    An overload fits when it names every updated field and each of its
    parameters has either an update or a current value. Exactly one
    overload must fit.

    Raises:
        ArgumentTypeMismatch: No overload fits, or more than one does
    """
    if len(candidates) == 1:
        return candidates[0]

    fitting = []
    for entry in candidates:
        names = {p.get("name", "") for p in entry.get("inputs", [])}
        if set(updates) <= names and all(n in updates or n in current for n in names):
            fitting.append(entry)

    if len(fitting) != 1:
        name = candidates[0].get("name", "?")
        raise ArgumentTypeMismatch(
            f"{len(fitting)} overloads of {name} fit fields {sorted(updates)}; expected exactly one"
        )
    return fitting[0]


def merge_updates(
    setter_inputs: Sequence[Mapping[str, Any]],
    current: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> list[Any]:
    """
    Build setter arguments from current values plus explicit updates.

    Args:
        setter_inputs: ABI ``inputs`` of the setter
        current: Current values keyed by parameter name
        updates: Provided fields only; presence of the key is what counts

    Returns:
        Ordered argument list for the setter

    Raises:
        ArgumentTypeMismatch: Unknown update field, or a parameter with
            neither a current value nor an update
    """
    names = [p.get("name", "") for p in setter_inputs]
    unknown = sorted(set(updates) - set(names))
    if unknown:
        raise ArgumentTypeMismatch(f"Unknown field(s): {', '.join(unknown)}")

    args = []
    for index, name in enumerate(names):
        if name in updates:
            args.append(updates[name])
        elif name in current:
            args.append(current[name])
        else:
            raise ArgumentTypeMismatch(
                f"No current value or update for parameter {index} ({name})",
                index=index,
            )
    return args


def _plain(value: Any) -> Any:
    if isinstance(value, (NativeAccountId, RawAddress)):
        return value.address
    if isinstance(value, tuple):
        return tuple(_plain(v) for v in value)
    return value
