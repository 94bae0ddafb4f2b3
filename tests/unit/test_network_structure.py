import numpy as np
import pytest

from neunet.core.activations import Activation
from neunet.core.errors import NullArgumentError, ShapeError, StructureError
from neunet.core.layer import Layer
from neunet.core.network import Network
from neunet.core.neuron import Neuron


def _weights_match_previous(network: Network) -> bool:
    for index, layer in enumerate(network):
        expected = len(network[index - 1]) if index > 0 else 0
        if any(neuron.input_count != expected for neuron in layer):
            return False
    return True


def _manual_count(network: Network) -> int:
    return sum(len(n.weights) + 1 for layer in list(network)[1:] for n in layer)


def test_links_follow_the_chain():
    network = Network.from_sizes([3, 4, 2])
    first, hidden, out = network
    assert first.previous is None and first.next is hidden
    assert hidden.previous is first and hidden.next is out
    assert out.previous is hidden and out.next is None
    assert _weights_match_previous(network)


def test_insert_and_remove_layer_resize_successor():
    network = Network.from_sizes([3, 2])
    network.insert(1, Layer(5))
    assert [len(layer) for layer in network] == [3, 5, 2]
    assert all(n.input_count == 5 for n in network[2])
    assert all(n.input_count == 3 for n in network[1])

    del network[1]
    assert all(n.input_count == 3 for n in network[1])
    assert network[0].next is network[1]
    assert _weights_match_previous(network)


def test_replacing_a_layer_relinks_neighbours():
    network = Network.from_sizes([2, 3, 1])
    replacement = Layer(6, Activation.TANH)
    network[1] = replacement
    assert replacement.previous is network[0]
    assert all(n.input_count == 6 for n in network[2])


def test_layer_resize_preserves_overlapping_weights():
    network = Network.from_sizes([3, 2, 2])
    network.randomize(np.random.default_rng(0))
    before = [n.weights.copy() for n in network[2]]

    network[1].resize(4)
    for neuron, old in zip(network[2], before):
        assert neuron.input_count == 4
        np.testing.assert_array_equal(neuron.weights[:2], old)
        np.testing.assert_array_equal(neuron.weights[2:], 0.0)

    network[1].resize(1)
    for neuron, old in zip(network[2], before):
        np.testing.assert_array_equal(neuron.weights, old[:1])
    assert _weights_match_previous(network)


def test_adding_a_neuron_to_a_layer_resizes_next_layer():
    network = Network.from_sizes([2, 2, 1])
    network[1].append(Neuron())
    assert network[1][2].input_count == 2
    assert network[2][0].input_count == 3
    network[1].remove(network[1][0])
    assert network[2][0].input_count == 2


def test_coefficient_count_invariant():
    for sizes in ([1, 1], [2, 2, 1], [4, 7, 3, 2], [5, 1, 5]):
        network = Network.from_sizes(sizes)
        assert network.coefficient_count() == _manual_count(network)
    assert Network.from_sizes([9]).coefficient_count() == 0


def test_coefficient_round_trip_is_exact():
    source = Network.from_sizes([3, 5, 2])
    source.randomize(np.random.default_rng(42), 0.5, 2.0)
    vector = source.get_coefficients()

    target = Network.from_sizes([3, 5, 2])
    target.set_coefficients(vector)
    for src_layer, dst_layer in zip(list(source)[1:], list(target)[1:]):
        for a, b in zip(src_layer, dst_layer):
            assert a.bias == b.bias
            np.testing.assert_array_equal(a.weights, b.weights)


def test_coefficient_layout_is_bias_then_weights():
    network = Network.from_sizes([2, 2, 1])
    network.randomize(np.random.default_rng(3))
    vector = network.get_coefficients()
    first = network[1][0]
    second = network[1][1]
    out = network[2][0]
    assert vector[0] == first.bias
    np.testing.assert_array_equal(vector[1:3], first.weights)
    assert vector[3] == second.bias
    np.testing.assert_array_equal(vector[4:6], second.weights)
    assert vector[6] == out.bias
    np.testing.assert_array_equal(vector[7:9], out.weights)


def test_set_coefficients_rejects_wrong_length():
    network = Network.from_sizes([2, 2, 1])
    with pytest.raises(ShapeError):
        network.set_coefficients(np.zeros(5, dtype=np.float32))
    with pytest.raises(NullArgumentError):
        network.set_coefficients(None)


def test_randomize_is_repeatable_and_bounded():
    a = Network.from_sizes([3, 4, 2])
    b = Network.from_sizes([3, 4, 2])
    a.randomize(123, 0.25, 0.75)
    b.randomize(np.random.default_rng(123), 0.25, 0.75)
    np.testing.assert_array_equal(a.get_coefficients(), b.get_coefficients())
    for layer in list(a)[1:]:
        for neuron in layer:
            assert abs(float(neuron.bias)) <= 0.25
            assert np.all(np.abs(neuron.weights) <= 0.75)


def test_layer_cannot_be_added_twice():
    network = Network.from_sizes([2, 2])
    with pytest.raises(StructureError):
        network.append(network[0])


def test_dtype_mismatch_is_rejected():
    network = Network.from_sizes([2, 2])
    with pytest.raises(TypeError):
        network.append(Layer(2, dtype=np.float64))


def test_copy_is_independent():
    network = Network.from_sizes([2, 3, 1])
    network.randomize(1)
    clone = network.copy()
    clone[1][0].bias = np.float32(99.0)
    assert network[1][0].bias != clone[1][0].bias
    assert clone[1].previous is clone[0]


def test_removed_layer_no_longer_rewires_the_network():
    network = Network.from_sizes([2, 3, 1])
    removed = network[1]
    del network[1]
    assert removed.next is None and removed.previous is None

    removed.append(Neuron())
    assert network[1].previous is network[0]
    assert network[1][0].input_count == 2
    assert _weights_match_previous(network)


def test_replaced_layer_no_longer_rewires_the_network():
    network = Network.from_sizes([2, 3, 1])
    old = network[1]
    network[1] = Layer(4)
    assert old.next is None and old.previous is None

    old.resize(7)
    assert network[2].previous is network[1]
    assert network[2][0].input_count == 4
    network.feed_forward(np.array([0.5, 0.5]))
