import math

import numpy as np
import pytest

from neunet.core.activations import Activation
from neunet.core.arguments import CalculationArguments, CalculationSettings, CancellationToken
from neunet.core.errors import NullArgumentError, ShapeError
from neunet.core.losses import REGISTRY, resolve
from neunet.core.types import MeasurementList, Sample, SampleList
from neunet.data import available_datasets, get_dataset


def test_builtin_datasets_are_registered():
    names = set(available_datasets())
    assert {"xor", "sine", "circle", "csv"} <= names


def test_xor_dataset():
    spec = get_dataset("xor")
    assert len(spec) == 4
    assert spec.samples.input_count == 2
    assert spec.samples.output_count == 1
    inputs, targets = spec.samples.as_arrays()
    assert inputs.dtype == np.float32
    np.testing.assert_array_equal(targets.ravel(), [0.0, 1.0, 1.0, 0.0])
    assert len(get_dataset("xor", repeat=3)) == 12


def test_sine_targets_fit_sigmoid_range():
    spec = get_dataset("sine", n_points=16)
    _, targets = spec.samples.as_arrays()
    assert targets.shape == (16, 1)
    assert targets.min() >= 0.0 and targets.max() <= 1.0


def test_circle_is_seeded():
    a = get_dataset("circle", n_points=40, seed=3)
    b = get_dataset("circle", n_points=40, seed=3)
    np.testing.assert_array_equal(a.samples.as_arrays()[0], b.samples.as_arrays()[0])
    labels = set(a.samples.as_arrays()[1].ravel().tolist())
    assert labels <= {0.0, 1.0}


def test_csv_dataset_scales_columns(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b,target\n0,10,5\n2,20,15\n4,30,10\n")
    spec = get_dataset("csv", csv_path=path)
    inputs, targets = spec.samples.as_arrays()
    assert spec.data_spec.d_in == 2
    np.testing.assert_allclose(inputs[:, 0], [0.0, 0.5, 1.0])
    np.testing.assert_allclose(targets.ravel(), [0.0, 1.0, 0.5])
    assert spec.data_spec.extra["input_columns"] == ["a", "b"]

    with pytest.raises(KeyError):
        get_dataset("csv", csv_path=path, target_cols="missing")


def test_unknown_dataset_lists_choices():
    with pytest.raises(KeyError, match="xor"):
        get_dataset("nope")


def test_sample_list_validation():
    samples = SampleList([Sample([0.0, 1.0], [1.0]), Sample([1.0, 1.0], [0.0])])
    samples.validate(2, 1)
    with pytest.raises(ShapeError):
        samples.validate(3, 1)
    with pytest.raises(NullArgumentError):
        Sample(None, [1.0])
    assert isinstance(samples[:1], SampleList)


def test_measurement_rows_are_views():
    measurements = MeasurementList(2, 3)
    measurements[1][:] = 4.0
    np.testing.assert_array_equal(measurements.to_array()[1], [4.0, 4.0, 4.0])
    assert len(measurements) == 2


def test_mse_and_cross_entropy_values():
    outputs = np.array([0.5, 1.0])
    targets = np.array([1.0, 1.0])
    assert resolve("mse").cost(outputs, targets) == pytest.approx(0.25 / 4)
    expected = -(math.log(0.5) + math.log(1.0 - 1e-7)) / 2
    assert resolve("cross_entropy").cost(outputs, targets) == pytest.approx(expected)
    assert resolve("mse").derivative_for(2)(0.5, 1.0) == pytest.approx(-0.25)
    with pytest.raises(ShapeError):
        resolve("mse").cost(outputs, np.zeros(3))
    with pytest.raises(KeyError, match="mse"):
        resolve("hinge")
    assert list(REGISTRY.names()) == ["cross_entropy", "mse"]


def test_settings_from_mapping():
    settings = CalculationSettings.from_mapping({"max_iter": "20", "learning_rate": 1, "parallel": 1})
    assert settings.max_iter == 20
    assert settings.learning_rate == 1.0
    assert settings.parallel is True
    with pytest.raises(KeyError, match="Available settings"):
        CalculationSettings.from_mapping({"momentum": 0.9})
    with pytest.raises(ValueError):
        CalculationSettings(learning_rate=0.0)
    with pytest.raises(ValueError):
        CalculationSettings(max_iter=-1)


def test_arguments_dispatch_and_cancellation():
    events = []

    class Partial:
        def report_iteration(self, iteration, max_iter):
            events.append((iteration, max_iter))

    token = CancellationToken()
    arguments = CalculationArguments(reporter=Partial(), token=token)
    arguments.notify("report_iteration", 1, 5)
    arguments.notify("report_progress", 1, 5)
    assert events == [(1, 5)]
    assert not arguments.cancellation_requested()
    token.cancel()
    assert arguments.cancellation_requested()
    assert CalculationArguments().settings == CalculationSettings()


def test_activation_parse_and_codes():
    assert Activation.parse("TANH") is Activation.TANH
    assert Activation.parse(Activation.RELU) is Activation.RELU
    assert Activation.from_code(Activation.IDENTITY.code) is Activation.IDENTITY
    assert Activation.SIGMOID.value == "sigmoid"
    assert Activation.SIGMOID.apply(0.0) == pytest.approx(0.5)
    assert Activation.SIGMOID.apply(-800.0) == pytest.approx(0.0)
    assert Activation.TANH.derivative(0.5) == pytest.approx(0.75)
    assert Activation.RELU.apply(-2.0) == 0.0
    with pytest.raises(ValueError, match="sigmoid"):
        Activation.parse("softmax")
    with pytest.raises(ValueError):
        Activation.from_code(99)


def test_cross_entropy_derivative_is_flat_where_cost_is_clipped():
    derivative = resolve("cross_entropy").derivative_for(1)
    assert derivative(1.0, 0.0) == 0.0
    assert derivative(0.0, 1.0) == 0.0
    assert derivative(0.25, 1.0) == pytest.approx(-0.75 / (0.25 * 0.75))

    loss = resolve("cross_entropy")
    saturated = np.array([1.0])
    nudged = np.array([1.0 - 1e-9])
    assert loss.cost(saturated, np.zeros(1)) == loss.cost(nudged, np.zeros(1))
