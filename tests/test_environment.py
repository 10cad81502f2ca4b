"""
Test Suite: Environment Model
=============================

Verifies the temperature and field dependence of the spin decoherence model.

Test Categories:
1. Calibration: ²⁸Si literature values at 20 mK, 1 T
2. Physical bounds: T2 ≤ 2·T1, T2* ≤ T2, clamps, finiteness
3. Trends: hotter → shorter T1/T2 and more thermal excitation
4. EnvironmentModel: validation, memoization, thread safety
5. Helpers: format_time, summary tables, sweeps
"""

import threading

import numpy as np
import pytest

from spin_qubit_simulator import (
    EnvironmentModel,
    MaterialParameters,
    compute_environment,
    format_time,
    relaxation_rates,
    sweep_environment,
    thermal_excitation_probability,
    zeeman_splitting,
)
from spin_qubit_simulator.environment import T1_MAX, T1_MIN, noise_level


TEMPERATURES_MK = [0.0, 1.0, 10.0, 20.0, 50.0, 100.0, 300.0, 1000.0, 2000.0, 4000.0]
FIELDS_T = [0.0, 0.1, 0.5, 1.0, 2.0, 3.0]


@pytest.fixture
def base_env():
    """Reference point: 20 mK, 1 T."""
    return compute_environment(20.0, 1.0)


@pytest.fixture
def hot_env():
    """Liquid-helium cryostat: 4 K, 1 T."""
    return compute_environment(4000.0, 1.0)


# =============================================================================
# CALIBRATION
# =============================================================================

class TestCalibration:
    """At the reference point the model must reproduce measured ²⁸Si values."""

    def test_t1_near_six_seconds(self, base_env):
        """Johnson noise alone gives 6 s; the direct process trims it slightly."""
        assert 4.8 < base_env.t1 < 7.2, (
            f"T1 at 20 mK, 1 T is {base_env.t1:.3f} s, expected ~6 s"
        )

    def test_t2_is_reference_value(self, base_env):
        assert base_env.t2 == pytest.approx(0.028, rel=1e-9)

    def test_t2_star_is_reference_value(self, base_env):
        assert base_env.t2_star == pytest.approx(120e-6, rel=1e-9)

    def test_thermal_excitation_negligible_at_base(self, base_env):
        """ΔE/kBT ≈ 67 at 20 mK, 1 T: the excited state is essentially empty."""
        assert base_env.thermal_excitation_prob < 1e-20

    def test_zeeman_splitting_at_one_tesla(self, base_env):
        """g·μB·B = 0.1158 meV at 1 T."""
        assert base_env.zeeman_splitting_meV == pytest.approx(0.11577, rel=1e-3)

    def test_noise_level_endpoints(self, base_env, hot_env):
        assert base_env.noise_level == pytest.approx(0.0, abs=1e-12)
        assert hot_env.noise_level == pytest.approx(1.0, abs=1e-12)

    def test_dominant_mechanism_changes_with_temperature(self, base_env, hot_env):
        """Johnson noise rules at base temperature; Raman's T⁷ wins at 4 K."""
        assert base_env.rates.dominant_mechanism == "johnson"
        assert hot_env.rates.dominant_mechanism == "raman"


# =============================================================================
# PHYSICAL BOUNDS
# =============================================================================

class TestPhysicalBounds:
    """Invariants that must hold everywhere on the operating grid."""

    @pytest.mark.parametrize("temperature_mK", TEMPERATURES_MK)
    @pytest.mark.parametrize("b_field", FIELDS_T)
    def test_t2_never_exceeds_twice_t1(self, temperature_mK, b_field):
        env = compute_environment(temperature_mK, b_field)
        assert env.t2 <= 2 * env.t1, (
            f"T2={env.t2:.3e} s > 2·T1={2 * env.t1:.3e} s "
            f"at {temperature_mK} mK, {b_field} T"
        )

    @pytest.mark.parametrize("temperature_mK", TEMPERATURES_MK)
    @pytest.mark.parametrize("b_field", FIELDS_T)
    def test_t2_star_never_exceeds_t2(self, temperature_mK, b_field):
        env = compute_environment(temperature_mK, b_field)
        assert env.t2_star <= env.t2

    @pytest.mark.parametrize("temperature_mK", TEMPERATURES_MK)
    @pytest.mark.parametrize("b_field", FIELDS_T)
    def test_all_quantities_finite_and_bounded(self, temperature_mK, b_field):
        env = compute_environment(temperature_mK, b_field)
        for name in ("t1", "t2", "t2_star", "thermal_excitation_prob", "noise_level"):
            value = getattr(env, name)
            assert np.isfinite(value), f"{name} is not finite: {value}"
        assert T1_MIN <= env.t1 <= T1_MAX
        assert env.t2 > 0 and env.t2_star > 0
        assert 0.0 <= env.thermal_excitation_prob <= 0.5
        assert 0.0 <= env.noise_level <= 1.0

    def test_zero_temperature_is_floored(self):
        """0 mK uses the 1 mK floor: no division by zero."""
        env = compute_environment(0.0, 1.0)
        floored = compute_environment(1.0, 1.0)
        assert env.temperature_mK == 0.0
        assert env.t1 == floored.t1
        assert env.t2 == floored.t2

    def test_extreme_temperature_stays_finite(self):
        env = compute_environment(1e9, 50.0)
        assert env.t1 == T1_MIN
        assert np.isfinite(env.t2) and env.t2 <= 2 * env.t1

    def test_zero_field_has_half_thermal_population(self):
        """No splitting means both levels are equally populated."""
        env = compute_environment(20.0, 0.0)
        assert env.thermal_excitation_prob == pytest.approx(0.5)


# =============================================================================
# TRENDS
# =============================================================================

class TestTemperatureAndFieldTrends:

    def test_t1_decreases_with_temperature(self):
        t1 = [compute_environment(T, 1.0).t1 for T in TEMPERATURES_MK[1:]]
        assert all(a >= b for a, b in zip(t1, t1[1:])), f"T1 not monotone: {t1}"

    def test_t2_decreases_with_temperature(self):
        t2 = [compute_environment(T, 1.0).t2 for T in TEMPERATURES_MK[1:]]
        assert all(a >= b for a, b in zip(t2, t2[1:])), f"T2 not monotone: {t2}"

    def test_hot_qubit_is_strongly_mixed(self, hot_env):
        """At 4 K and 1 T, ΔE/kBT ≈ 0.34 so roughly 40% sits in |1⟩."""
        assert 0.35 < hot_env.thermal_excitation_prob < 0.45

    def test_higher_field_lowers_thermal_excitation(self):
        low = compute_environment(500.0, 0.5).thermal_excitation_prob
        high = compute_environment(500.0, 3.0).thermal_excitation_prob
        assert high < low

    def test_high_field_shortens_t1_through_direct_process(self):
        """The direct process scales as B⁴."""
        low = compute_environment(20.0, 0.5).t1
        high = compute_environment(20.0, 10.0).t1
        assert high < low

    def test_relaxation_rates_sum(self):
        rates = relaxation_rates(0.1, 1.0)
        assert rates.total == pytest.approx(
            rates.johnson + rates.direct + rates.raman + rates.orbach
        )

    def test_thermal_probability_formula(self):
        splitting = zeeman_splitting(1.0)
        T = 0.5
        expected = 1.0 / (1.0 + np.exp(splitting / (1.380649e-23 * T)))
        assert thermal_excitation_probability(splitting, T) == pytest.approx(expected)

    def test_noise_level_clipped_below_reference(self):
        assert noise_level(0.005) == 0.0


# =============================================================================
# ENVIRONMENT MODEL
# =============================================================================

class TestEnvironmentModel:

    def test_defaults(self):
        model = EnvironmentModel()
        state = model.get_state()
        assert state.temperature_mK == 20.0
        assert state.b_field_tesla == 1.0

    def test_get_state_is_memoized(self):
        model = EnvironmentModel()
        assert model.get_state() is model.get_state()

    def test_setter_replaces_snapshot(self):
        model = EnvironmentModel()
        before = model.get_state()
        after = model.set_temperature(1000.0)
        assert after is model.get_state()
        assert after is not before
        assert after.t1 < before.t1

    def test_negative_temperature_clamped_with_warning(self):
        model = EnvironmentModel()
        with pytest.warns(RuntimeWarning, match="clamped"):
            state = model.set_temperature(-50.0)
        assert state.temperature_mK == 0.0
        assert np.isfinite(state.t1)

    def test_negative_field_clamped_with_warning(self):
        model = EnvironmentModel()
        with pytest.warns(RuntimeWarning, match="clamped"):
            state = model.set_b_field(-2.0)
        assert state.b_field_tesla == 0.0

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "warm"])
    def test_invalid_input_keeps_previous_value(self, bad):
        model = EnvironmentModel(temperature_mK=100.0)
        with pytest.warns(RuntimeWarning, match="Ignoring"):
            state = model.set_temperature(bad)
        assert state.temperature_mK == 100.0

    def test_field_setter_keeps_temperature(self):
        model = EnvironmentModel(temperature_mK=300.0)
        model.set_b_field(2.5)
        assert model.temperature_mK == 300.0
        assert model.b_field == 2.5

    def test_snapshot_matches_pure_function(self):
        model = EnvironmentModel()
        model.set_temperature(750.0)
        model.set_b_field(0.3)
        assert model.get_state() == compute_environment(750.0, 0.3)

    def test_concurrent_setters_give_consistent_snapshots(self):
        """Every snapshot a reader sees must belong to one (T, B) pair."""
        model = EnvironmentModel()
        stop = threading.Event()
        seen = []

        def reader():
            while not stop.is_set():
                seen.append(model.get_state())

        def writer(values, setter):
            for v in values:
                setter(v)

        readers = [threading.Thread(target=reader) for _ in range(2)]
        writers = [
            threading.Thread(target=writer, args=(np.linspace(1, 4000, 200), model.set_temperature)),
            threading.Thread(target=writer, args=(np.linspace(0.1, 3, 200), model.set_b_field)),
        ]
        for t in readers + writers:
            t.start()
        for t in writers:
            t.join()
        stop.set()
        for t in readers:
            t.join()

        for snap in seen[::max(1, len(seen) // 200)]:
            assert snap == compute_environment(snap.temperature_mK, snap.b_field_tesla)


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    @pytest.mark.parametrize("seconds,expected", [
        (6.0, "6.0 s"),
        (0.028, "28.0 ms"),
        (120e-6, "120.0 μs"),
        (3.5e-9, "3.5 ns"),
        (5e-12, "5 ps"),
    ])
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected

    def test_summary_tables(self, base_env):
        table = base_env.summary_table()
        assert "T1" in table and "T2" in table
        assert "johnson" in base_env.rates.summary_table()

    def test_to_dict_keys(self, base_env):
        d = base_env.to_dict()
        assert d["T1_s"] == base_env.t1
        assert d["b_field_T"] == 1.0

    def test_sweep_shapes_and_values(self):
        temps = [20.0, 200.0, 2000.0]
        fields = [0.5, 1.0]
        sweep = sweep_environment(temps, fields)
        assert sweep.t1.shape == (3, 2)
        assert sweep.t2[1, 0] == compute_environment(200.0, 0.5).t2
        assert np.all(sweep.t2 <= 2 * sweep.t1)

    def test_invalid_material_rejected(self):
        with pytest.raises(ValueError):
            MaterialParameters(t1_ref=-1.0)
        with pytest.raises(ValueError):
            MaterialParameters(saturation_temperature=0.01)

    def test_custom_material_scales_t1(self):
        material = MaterialParameters(t1_ref=1.0)
        env = compute_environment(20.0, 0.0, material)
        assert env.t1 == pytest.approx(1.0, rel=1e-3)
