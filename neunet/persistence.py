"""Binary persistence of network structure and coefficients.

Stream layout (little endian)::

    b"NNET"                     magic
    uint16                      format version
    uint8                       dtype code (1 = float32, 2 = float64)
    int32                       layer count L
    int32[L]                    layer sizes
    uint8[sum(sizes)]           activation code of every neuron, layer by layer
    int32                       coefficient count C
    float[C]                    coefficient vector in network layout

The coefficient vector is exactly :meth:`Network.get_coefficients`, so a
reader rebuilds the topology from the size list before loading it.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Mapping

import numpy as np

from .core.activations import Activation
from .core.errors import StructureError
from .core.layer import Layer
from .core.network import Network
from .core.neuron import Neuron

MAGIC = b"NNET"
VERSION = 1

_DTYPE_CODES: Mapping[int, np.dtype] = {
    1: np.dtype("<f4"),
    2: np.dtype("<f8"),
}


def _dtype_code(dtype: np.dtype) -> int:
    for code, candidate in _DTYPE_CODES.items():
        if candidate == np.dtype(dtype).newbyteorder("<"):
            return code
    raise StructureError(f"Unsupported coefficient dtype: {dtype}")


def _activation(code: int) -> Activation:
    try:
        return Activation.from_code(code)
    except ValueError as exc:
        raise StructureError(f"Unknown activation code {code} in stream") from exc


def _read_exact(source: BinaryIO, size: int) -> bytes:
    data = source.read(size)
    if len(data) != size:
        raise StructureError(f"Unexpected end of stream: wanted {size} bytes, got {len(data)}")
    return data


def _read_array(source: BinaryIO, dtype: str | np.dtype, count: int) -> np.ndarray:
    dtype = np.dtype(dtype)
    return np.frombuffer(_read_exact(source, dtype.itemsize * count), dtype=dtype, count=count)


def write_structure(network: Network, sink: BinaryIO) -> None:
    """Write ``network`` to the binary stream ``sink``."""

    sizes = np.array([len(layer) for layer in network], dtype="<i4")
    codes = np.array(
        [neuron.activation_fn.code for layer in network for neuron in layer], dtype="u1"
    )
    coefficients = network.get_coefficients()
    sink.write(MAGIC)
    sink.write(np.array([VERSION], dtype="<u2").tobytes())
    sink.write(np.array([_dtype_code(network.dtype)], dtype="u1").tobytes())
    sink.write(np.array([sizes.shape[0]], dtype="<i4").tobytes())
    sink.write(sizes.tobytes())
    sink.write(codes.tobytes())
    sink.write(np.array([coefficients.shape[0]], dtype="<i4").tobytes())
    sink.write(coefficients.astype(_DTYPE_CODES[_dtype_code(network.dtype)]).tobytes())


def read_structure(source: BinaryIO) -> Network:
    """Rebuild a :class:`Network` previously written by :func:`write_structure`."""

    magic = _read_exact(source, len(MAGIC))
    if magic != MAGIC:
        raise StructureError(f"Not a network stream (magic {magic!r})")
    version = int(_read_array(source, "<u2", 1)[0])
    if version != VERSION:
        raise StructureError(f"Unsupported network format version {version}")
    dtype_code = int(_read_array(source, "u1", 1)[0])
    if dtype_code not in _DTYPE_CODES:
        raise StructureError(f"Unknown dtype code {dtype_code}")
    dtype = _DTYPE_CODES[dtype_code]
    layer_count = int(_read_array(source, "<i4", 1)[0])
    if layer_count < 0:
        raise StructureError(f"Negative layer count {layer_count}")
    sizes = _read_array(source, "<i4", layer_count)
    if np.any(sizes < 0):
        raise StructureError("Negative layer size in stream")
    codes = _read_array(source, "u1", int(sizes.sum()))

    native = dtype.newbyteorder("=")
    network = Network(dtype=native)
    cursor = 0
    for size in sizes:
        layer_codes = codes[cursor : cursor + int(size)]
        cursor += int(size)
        fn = _activation(int(layer_codes[0])) if size else Activation.SIGMOID
        layer = Layer(0, fn, dtype=native)
        for code in layer_codes:
            layer.append(Neuron(0, _activation(int(code)), dtype=native))
        network.append(layer)

    count = int(_read_array(source, "<i4", 1)[0])
    if count != network.coefficient_count():
        raise StructureError(
            f"Stream holds {count} coefficients but its topology needs {network.coefficient_count()}"
        )
    coefficients = _read_array(source, dtype, count).astype(native)
    network.set_coefficients(coefficients)
    return network


def save_network(path: str | Path, network: Network) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        write_structure(network, handle)
    return str(path)


def load_network(path: str | Path) -> Network:
    with Path(path).open("rb") as handle:
        return read_structure(handle)


def save_checkpoint(path: str | Path, network: Network) -> str:
    """Write layer sizes and coefficients as a compressed ``.npz`` archive."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(
            handle,
            sizes=np.array([len(layer) for layer in network], dtype=np.int32),
            coefficients=network.get_coefficients(),
        )
    return str(path)


def load_checkpoint(path: str | Path, network: Network) -> None:
    """Load coefficients saved by :func:`save_checkpoint` into ``network``."""

    with np.load(Path(path)) as archive:
        sizes = [int(size) for size in archive["sizes"]]
        if sizes != [len(layer) for layer in network]:
            raise StructureError(f"Checkpoint topology {sizes} does not match {network!r}")
        network.set_coefficients(archive["coefficients"].astype(network.dtype))


__all__ = [
    "load_checkpoint",
    "load_network",
    "read_structure",
    "save_checkpoint",
    "save_network",
    "write_structure",
]
