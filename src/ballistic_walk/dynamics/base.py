import numpy as np
from dataclasses import is_dataclass, fields, MISSING


class ConfigurationError(ValueError):
    """ Raised when physical parameters are invalid (non-positive mass or length,
    centre of mass outside its segment, negative composed inertia, ...). """


class NumericalFailure(RuntimeError):
    """ Raised when the dynamics cannot produce an acceleration for a state
    (singular / ill-conditioned mass matrix, non-finite state).

    Attributes:
        t (float): time at which the failure happened (None if unknown)
        x (np.ndarray): offending state
    """

    def __init__(self, message, t=None, x=None):
        super().__init__(message)
        self.t = t
        self.x = None if x is None else np.array(x, dtype=float)

    def __str__(self):
        msg = super().__str__()
        if self.t is not None:
            msg += f" (t={self.t:.6g})"
        if self.x is not None:
            msg += f" at state {np.array2string(self.x, precision=4)}"
        return msg


def _coerce(field_name, field_type, field_value):
    # YAML gives ints for values written without a decimal point
    if field_type is float and isinstance(field_value, (int, float)) and not isinstance(field_value, bool):
        return float(field_value)
    if not isinstance(field_value, field_type):
        raise ConfigurationError(f"Parameter {field_name} should be of type {field_type.__name__}. "
                                 f"Got {field_value} of type {type(field_value).__name__} instead.")
    return field_value


def validate_params(dataclass_params, params):
    """ Validate a (possibly nested) parameter dictionary against a dataclass.

    Fields missing from ``params`` fall back to their defaults; unknown keys are rejected.

    Args:
        dataclass_params (dataclass): dataclass type (e.g. ballistic_walk.anthropometry.Anthropometry)
        params (dict): parameters dictionary from config file.
    Raises:
        ConfigurationError: if a required parameter is missing, unknown or has the wrong type
    Returns:
        Param dataclass instance if all required parameters are present
    """

    if not is_dataclass(dataclass_params):
        raise ConfigurationError(f"{dataclass_params!r} is not a dataclass.")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ConfigurationError(f"Parameters for {dataclass_params.__name__} should be a dictionary, got {params!r}.")

    known = {field.name for field in fields(dataclass_params)}
    unknown = sorted(set(params) - known)
    if unknown:
        raise ConfigurationError(f"Unknown parameter(s) for {dataclass_params.__name__}: {', '.join(unknown)}")

    processed_params = {}

    for field in fields(dataclass_params):
        field_name = field.name
        field_type = field.type

        if field_name not in params:
            if field.default is MISSING and field.default_factory is MISSING:
                raise ConfigurationError(f"Missing required parameter: {field_name}")
            continue  # optional field, dataclass default applies

        field_value = params[field_name]
        if is_dataclass(field_type):
            # Recursively create dataclass instance for nested dataclass
            processed_params[field_name] = validate_params(field_type, field_value)
        else:
            processed_params[field_name] = _coerce(field_name, field_type, field_value)

    return dataclass_params(**processed_params)
