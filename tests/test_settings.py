import pytest

from rectpartition.EngineSettings import ParameterSettings, settings


def test_defaults():
    fresh = ParameterSettings()
    assert fresh.get('COORD_TOLERANCE') == 1e-9
    assert fresh.get('EXTENSION_OVERSHOOT') == 1.0
    assert fresh.get('PREFER_HORIZONTAL_EXTENSION') is True
    assert fresh.get('DISCARD_COMPLEX_CYCLES') is True
    assert fresh.get('STRICT_CYCLE_EXTRACTION') is False


def test_set_converts_to_declared_type():
    settings.set('EXTENSION_OVERSHOOT', 2)
    assert settings.get('EXTENSION_OVERSHOOT') == 2.0
    assert isinstance(settings.get('EXTENSION_OVERSHOOT'), float)


def test_set_rejects_unconvertible_values():
    with pytest.raises(TypeError):
        settings.set('COORD_TOLERANCE', 'not a number')


def test_unknown_keys():
    with pytest.raises(KeyError):
        settings.get('NO_SUCH_PARAMETER')
    with pytest.raises(KeyError):
        settings.set('NO_SUCH_PARAMETER', 1)
    with pytest.raises(KeyError):
        settings.get_definition('NO_SUCH_PARAMETER')


def test_reset():
    settings.set('STRICT_CYCLE_EXTRACTION', True)
    settings.set('EXTENSION_OVERSHOOT', 5.0)
    settings.reset_param_to_default('STRICT_CYCLE_EXTRACTION')
    assert settings.get('STRICT_CYCLE_EXTRACTION') is False
    assert settings.get('EXTENSION_OVERSHOOT') == 5.0
    settings.reset_to_defaults()
    assert settings.get('EXTENSION_OVERSHOOT') == 1.0


def test_keys_and_snapshot():
    assert set(settings.get_all_keys()) == set(settings.as_dict())
    definition = settings.get_definition('COORD_TOLERANCE')
    assert definition.type is float
    assert definition.description
