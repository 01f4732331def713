"""Minimal contract interface built from JSON ABI descriptors.

Signatures, selectors and parameter types come from ``eth_utils.abi``;
arguments and return data go through ``eth_abi``. Cheap to construct, so
callers that only hold an ABI can build one per batch and throw it away.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError
from eth_utils.abi import (
    abi_to_signature,
    function_abi_to_4byte_selector,
    get_abi_input_types,
    get_abi_output_types,
)

from core.base_types import Address

from .errors import AbiError

AbiDescriptor = Union[str, Sequence[Mapping[str, Any]]]


def _prepare_arg(value: Any) -> Any:
    if isinstance(value, Address):
        return value.checksum
    if isinstance(value, (list, tuple)):
        return [_prepare_arg(item) for item in value]
    return value


@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    selector: bytes
    signature: str

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any]) -> "AbiFunction":
        abi = {"type": "function", "inputs": [], "outputs": [], **entry}
        try:
            return cls(
                name=abi["name"],
                inputs=tuple(get_abi_input_types(abi)),
                outputs=tuple(get_abi_output_types(abi)),
                selector=function_abi_to_4byte_selector(abi),
                signature=abi_to_signature(abi),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AbiError(f"Malformed function entry {entry!r}") from exc

    def encode(self, args: Sequence[Any] = ()) -> bytes:
        args = list(args)
        if len(args) != len(self.inputs):
            raise AbiError(
                f"{self.signature} expects {len(self.inputs)} args, got {len(args)}"
            )
        try:
            return self.selector + abi_encode(list(self.inputs), _prepare_arg(args))
        except EncodingError as exc:
            raise AbiError(f"Cannot encode arguments for {self.signature}: {exc}") from exc

    def decode(self, data: bytes) -> Any:
        """Decode return data; a single output is returned bare."""
        values = abi_decode(list(self.outputs), data)
        if len(values) == 1:
            return values[0]
        return tuple(values)


class ContractInterface:
    """Function lookup, encoding and decoding for one contract ABI."""

    def __init__(self, abi: AbiDescriptor):
        if isinstance(abi, str):
            try:
                abi = json.loads(abi)
            except json.JSONDecodeError as exc:
                raise AbiError("ABI string is not valid JSON") from exc
        if not isinstance(abi, (list, tuple)):
            raise AbiError("ABI must be a list of entries")
        self._functions: dict[str, list[AbiFunction]] = {}
        for entry in abi:
            if not isinstance(entry, Mapping) or entry.get("type", "function") != "function":
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                raise AbiError(f"function entry without name: {entry!r}")
            self._functions.setdefault(name, []).append(AbiFunction.from_abi(entry))

    @property
    def function_names(self) -> list[str]:
        return list(self._functions)

    def get_function(self, method: str, arg_count: Optional[int] = None) -> AbiFunction:
        """
        Resolve a function by name or full signature.

        Overloads are disambiguated by argument count.
        """
        if "(" in method:
            name = method.split("(", 1)[0]
            for fn in self._functions.get(name, []):
                if fn.signature == method:
                    return fn
            raise AbiError(f"Unknown function {method}")

        candidates = self._functions.get(method)
        if not candidates:
            raise AbiError(f"Unknown function {method}")
        if len(candidates) == 1:
            return candidates[0]
        if arg_count is not None:
            matching = [fn for fn in candidates if len(fn.inputs) == arg_count]
            if len(matching) == 1:
                return matching[0]
        raise AbiError(f"Ambiguous overloaded function {method}")

    def encode_function_data(self, method: str, args: Sequence[Any] = ()) -> bytes:
        args = list(args)
        return self.get_function(method, len(args)).encode(args)

    def decode_function_result(
        self, method: str, data: bytes, arg_count: Optional[int] = None
    ) -> Any:
        return self.get_function(method, arg_count).decode(data)


@dataclass(frozen=True)
class Contract:
    """A resolved contract handle: address plus its interface."""

    address: Address
    interface: ContractInterface

    @classmethod
    def from_abi(cls, address: Union[str, Address], abi: AbiDescriptor) -> "Contract":
        if not isinstance(address, Address):
            address = Address.from_string(address)
        return cls(address=address, interface=ContractInterface(abi))

    def encode(self, method: str, args: Iterable[Any] = ()) -> bytes:
        return self.interface.encode_function_data(method, list(args))

    def decode(self, method: str, data: bytes, arg_count: Optional[int] = None) -> Any:
        return self.interface.decode_function_result(method, data, arg_count)
