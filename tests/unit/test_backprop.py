import numpy as np
import pytest

from neunet.core.arguments import CalculationArguments, CalculationSettings
from neunet.core.errors import NullArgumentError, ShapeError
from neunet.core.network import Network
from neunet.core.types import MeasurementList, Sample, SampleList


def _small_network(dtype=np.float64, seed=5):
    network = Network.from_sizes([2, 2, 1], dtype=dtype)
    network.randomize(np.random.default_rng(seed), 1.0, 1.0)
    return network


def _cost_and_gradient(network, samples, loss="mse"):
    gradient = network.create_coefficients()
    measurements = MeasurementList(len(samples), network.output_count, network.dtype)
    args = CalculationArguments(CalculationSettings(loss=loss))
    step = network.compute_cost_and_gradient(samples, gradient, measurements, args)
    return step.cost, gradient


def test_feed_forward_matches_manual_computation():
    network = _small_network()
    x = np.array([0.3, -0.7])
    out = network.feed_forward(x)

    hidden = []
    for neuron in network[1]:
        z = neuron.bias + neuron.weights @ x
        hidden.append(1.0 / (1.0 + np.exp(-z)))
    o = network[2][0]
    expected = 1.0 / (1.0 + np.exp(-(o.bias + o.weights @ np.array(hidden))))
    assert out[0] == pytest.approx(expected, rel=1e-12)


def test_feed_forward_is_deterministic():
    network = _small_network(np.float32)
    x = np.array([0.1, 0.9], dtype=np.float32)
    first = network.feed_forward(x).copy()
    second = network.feed_forward(x).copy()
    np.testing.assert_array_equal(first, second)


def test_feed_forward_writes_into_supplied_buffer():
    network = _small_network()
    buffer = np.zeros(1)
    returned = network.feed_forward(np.array([1.0, 0.0]), buffer)
    assert returned is buffer
    assert buffer[0] != 0.0


def test_shape_mismatch_rejected_without_activation_writes():
    network = _small_network()
    network.feed_forward(np.array([0.25, 0.5]))
    before = [layer.activations().copy() for layer in network]

    with pytest.raises(ShapeError):
        network.feed_forward(np.array([1.0, 2.0, 3.0]))
    with pytest.raises(ShapeError):
        network.feed_forward(np.array([1.0, 2.0]), np.zeros(3))
    with pytest.raises(NullArgumentError):
        network.feed_forward(None)

    for layer, old in zip(network, before):
        np.testing.assert_array_equal(layer.activations(), old)


@pytest.mark.parametrize("loss", ["mse", "cross_entropy"])
def test_gradient_matches_finite_differences(loss):
    network = _small_network()
    samples = SampleList([Sample([0.5, -0.25], [1.0])])
    cost, gradient = _cost_and_gradient(network, samples, loss)
    base = network.get_coefficients().copy()

    eps = 1e-6
    for index in range(base.shape[0]):
        plus = base.copy()
        plus[index] += eps
        network.set_coefficients(plus)
        c_plus = network.evaluate(samples, loss)
        minus = base.copy()
        minus[index] -= eps
        network.set_coefficients(minus)
        c_minus = network.evaluate(samples, loss)
        numeric = (c_plus - c_minus) / (2 * eps)
        assert gradient[index] == pytest.approx(numeric, rel=1e-3, abs=1e-8)
    network.set_coefficients(base)
    assert network.evaluate(samples, loss) == pytest.approx(cost)


def test_gradient_is_batch_average():
    network = _small_network(seed=11)
    a = Sample([0.0, 1.0], [1.0])
    b = Sample([1.0, 1.0], [0.0])
    cost_a, grad_a = _cost_and_gradient(network, SampleList([a]))
    cost_b, grad_b = _cost_and_gradient(network, SampleList([b]))
    cost_ab, grad_ab = _cost_and_gradient(network, SampleList([a, b]))
    assert cost_ab == pytest.approx((cost_a + cost_b) / 2)
    np.testing.assert_allclose(grad_ab, (grad_a + grad_b) / 2, rtol=1e-12)


def test_gradient_buffer_is_zeroed_each_call():
    network = _small_network()
    samples = SampleList([Sample([0.2, 0.4], [0.0])])
    gradient = np.full(network.coefficient_count(), 123.0)
    measurements = MeasurementList(1, 1, network.dtype)
    network.compute_cost_and_gradient(samples, gradient, measurements, CalculationArguments())
    _, fresh = _cost_and_gradient(network, samples)
    np.testing.assert_allclose(gradient, fresh)


def test_measurements_hold_network_outputs():
    network = _small_network()
    samples = SampleList.from_arrays(np.array([[0.0, 0.0], [1.0, 0.5]]), np.array([0.0, 1.0]))
    measurements = MeasurementList(2, 1, network.dtype)
    gradient = network.create_coefficients()
    network.compute_cost_and_gradient(samples, gradient, measurements, CalculationArguments())
    for sample, measured in zip(samples, measurements):
        np.testing.assert_allclose(measured, network.feed_forward(sample.inputs))


def test_parallel_evaluation_matches_sequential():
    network = Network.from_sizes([3, 6, 4, 2], activation="tanh", output_activation="sigmoid", dtype=np.float64)
    network.randomize(np.random.default_rng(8))
    rng = np.random.default_rng(9)
    samples = SampleList.from_arrays(rng.uniform(size=(5, 3)), rng.uniform(size=(5, 2)))

    sequential = network.create_coefficients()
    parallel = network.create_coefficients()
    m = MeasurementList(5, 2, np.float64)
    s_step = network.compute_cost_and_gradient(samples, sequential, m, CalculationArguments())
    with network._executor(True, 3) as executor:
        p_step = network.compute_cost_and_gradient(samples, parallel, m, CalculationArguments(), executor)
    assert p_step.cost == pytest.approx(s_step.cost, rel=1e-12)
    np.testing.assert_allclose(parallel, sequential, rtol=1e-12)
