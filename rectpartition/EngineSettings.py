from typing import Any, Dict, NamedTuple, Optional, Type


class ParameterDefinition(NamedTuple):
    """Defines an engine parameter, default value and description"""
    default: Optional[Any]
    type: Type
    description: str


class ParameterSettings:
    """Centralized tuning parameters for the decomposition engine"""

    PARAMETER_DEFINITIONS = {
        # Geometry
        'COORD_TOLERANCE': ParameterDefinition(
            1e-9, float, 'Zero test for parallel and collinear checks'
        ),
        'EXTENSION_OVERSHOOT': ParameterDefinition(
            1.0, float, 'Distance past the bounding box an extension '
                        'is drawn before it is cut back'
        ),

        # Rectangle pass
        'PREFER_HORIZONTAL_EXTENSION': ParameterDefinition(
            True, bool, 'Extend concave vertices horizontally first'
        ),

        # Cycle extraction
        'DISCARD_COMPLEX_CYCLES': ParameterDefinition(
            True, bool, 'Drop cycles with more than one repeated vertex'
        ),
        'STRICT_CYCLE_EXTRACTION': ParameterDefinition(
            False, bool, 'Raise instead of recording a diagnostic when a '
                         'cycle cannot be extracted'
        ),
    }

    def __init__(self):
        self._parameters: Dict[str, Any] = {}
        self._initialized = False

    def _ensure_initialized(self):
        """Ensure params are initialized (called on first access)"""
        if not self._initialized:
            self._load_defaults()
            self._initialized = True

    def _load_defaults(self):
        """Load default parameter values"""
        for key, definition in self.PARAMETER_DEFINITIONS.items():
            self._parameters[key] = definition.default

    def get(self, key: str) -> Any:
        """Get param by key"""
        self._ensure_initialized()
        if key not in self._parameters:
            raise KeyError(f"Parameter '{key}' not defined")
        return self._parameters[key]

    def set(self, key: str, value: Any):
        """Set param by key, converting to the declared type"""
        self._ensure_initialized()
        if key not in self.PARAMETER_DEFINITIONS:
            raise KeyError(f"Parameter '{key}' not defined")
        param_type = self.PARAMETER_DEFINITIONS[key].type
        if not isinstance(value, param_type):
            try:
                value = param_type(value)
            except (TypeError, ValueError):
                raise TypeError(f"Parameter '{key}' must "
                                f"be of type {param_type.__name__}")
        self._parameters[key] = value

    def get_definition(self, key: str) -> ParameterDefinition:
        """Get parameter definition by key"""
        if key not in self.PARAMETER_DEFINITIONS:
            raise KeyError(f"Parameter '{key}' not defined")
        return self.PARAMETER_DEFINITIONS[key]

    def get_all_keys(self):
        """Get all available parameter keys"""
        return list(self.PARAMETER_DEFINITIONS.keys())

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of the current values"""
        self._ensure_initialized()
        return dict(self._parameters)

    def reset_to_defaults(self):
        """Reset all params to default params"""
        self._parameters.clear()
        self._initialized = False
        self._ensure_initialized()

    def reset_param_to_default(self, key: str):
        """Reset a specific param to its default"""
        if key not in self.PARAMETER_DEFINITIONS:
            raise KeyError(f"Parameter '{key}' not defined")
        self._ensure_initialized()
        self._parameters[key] = self.PARAMETER_DEFINITIONS[key].default


# Global engine settings instance
settings = ParameterSettings()
