"""Tests for the GPIO backends and the relay valve controller."""
import pytest
from unittest.mock import MagicMock
from sprinksync.hardware import MockGPIO, create_gpio
from sprinksync.hardware.valve_interface import RelayValveController, ValveState
from sprinksync.safety.errors import HardwareFault, ValveNotInitialized

PINS = {1: 17, 2: 27, 3: 22}


class TestMockGPIO:
    """Test the in-memory GPIO backend."""

    def test_output_claimed_at_initial_level(self, mock_gpio):
        mock_gpio.setup_output(17)
        mock_gpio.setup_output(27, initial=False)
        assert mock_gpio.read_pin(17) is True
        assert mock_gpio.read_pin(27) is False
        assert mock_gpio.writes == []

    def test_write_unconfigured_pin_fails(self, mock_gpio):
        with pytest.raises(ValueError):
            mock_gpio.write_pin(5, False)

    def test_cleanup_releases_every_pin(self, mock_gpio):
        mock_gpio.setup_output(17)
        mock_gpio.setup_output(27)
        mock_gpio.cleanup()
        assert list(mock_gpio.configured_pins()) == []
        with pytest.raises(ValueError):
            mock_gpio.read_pin(17)

    def test_create_gpio_modes(self):
        assert isinstance(create_gpio('mock'), MockGPIO)
        with pytest.raises(ValueError):
            create_gpio('bogus')


class TestRelayValveController:
    """Test valve actuation through active-low relays."""

    def test_initialize_forces_every_zone_off(self, valves, mock_gpio, sleeps):
        valves.initialize(PINS)

        for pin in PINS.values():
            assert mock_gpio.pin_states[pin] is True  # HIGH = relay off
        assert sorted(pin for pin, _ in mock_gpio.writes) == sorted(PINS.values())
        assert sleeps == [0.1]

    def test_open_and_close(self, valves, mock_gpio):
        valves.initialize(PINS)

        valves.open_valve(2)
        assert mock_gpio.pin_states[27] is False
        assert valves.read_valve(2) == ValveState.ON
        assert valves.get_open_valves() == [2]

        valves.close_valve(2)
        assert mock_gpio.pin_states[27] is True
        assert valves.read_valve(2) == ValveState.OFF

    def test_close_is_idempotent(self, valves):
        valves.initialize(PINS)
        valves.close_valve(1)
        valves.close_valve(1)
        assert valves.read_valve(1) == ValveState.OFF

    def test_active_high_board(self, mock_gpio):
        valves = RelayValveController(mock_gpio, active_low=False, stabilization_delay=0, sleep=lambda s: None)
        valves.initialize({1: 17})
        assert mock_gpio.pin_states[17] is False

        valves.open_valve(1)
        assert mock_gpio.pin_states[17] is True

    def test_unknown_zone(self, valves):
        valves.initialize(PINS)
        with pytest.raises(ValveNotInitialized):
            valves.open_valve(9)

    def test_open_before_initialize(self, valves):
        with pytest.raises(ValveNotInitialized):
            valves.open_valve(1)

    def test_duplicate_pins_rejected(self, valves):
        with pytest.raises(ValueError):
            valves.initialize({1: 17, 2: 17})

    def test_gpio_failure_becomes_hardware_fault(self):
        gpio = MagicMock()
        valves = RelayValveController(gpio, stabilization_delay=0, sleep=lambda s: None)
        valves.initialize({1: 17})

        gpio.write_pin.side_effect = RuntimeError('bus error')
        with pytest.raises(HardwareFault):
            valves.open_valve(1)

    def test_close_all_attempts_every_zone(self):
        gpio = MagicMock()
        valves = RelayValveController(gpio, stabilization_delay=0, sleep=lambda s: None)
        valves.initialize(PINS)
        gpio.write_pin.reset_mock()

        def fail_on_27(pin, value):
            if pin == 27:
                raise RuntimeError('stuck')
        gpio.write_pin.side_effect = fail_on_27

        with pytest.raises(HardwareFault):
            valves.close_all_valves()
        assert gpio.write_pin.call_count == len(PINS)

    def test_cleanup_releases_pins(self, valves, mock_gpio):
        valves.initialize(PINS)
        valves.open_valve(1)

        valves.cleanup()

        assert list(mock_gpio.configured_pins()) == []
        assert valves.zone_pins == {}
        assert [value for pin, value in mock_gpio.writes if pin == 17][-1] is True
