"""Module with a parent class of all data structures."""

from dataclasses import dataclass

import numpy as np


@dataclass(eq=False)
class DataBase:
    """Base class of all data structures.

    Defines basic methods shared by all data structures.
    """

    # Fixed-length attributes as (key, size) or (key, (size, dtype)) pairs
    _fixed_length_attrs = ()

    # Variable-length attributes as (key, dtype) pairs
    _var_length_attrs = ()

    def __post_init__(self):
        """Immediately called after building the class attributes.

        Gives default values to array-like attributes and casts provided
        array-likes to numpy arrays of the expected type. If a default value
        was provided in the attribute definition, all instances of this class
        would point to the same memory location.
        """
        # Provide default values to the fixed-length array attributes
        for attr, size in self._fixed_length_attrs:
            if not isinstance(size, tuple):
                dtype = np.float32
            else:
                size, dtype = size
            if getattr(self, attr) is None:
                setattr(self, attr, np.zeros(size, dtype=dtype))
            else:
                value = np.asarray(getattr(self, attr), dtype=dtype)
                assert value.shape == (size,), (
                    f"Attribute `{attr}` of {self.__class__.__name__} must "
                    f"have {size} elements, got {value.shape}."
                )
                setattr(self, attr, value)

        # Provide default values to the variable-length array attributes
        for attr, dtype in self._var_length_attrs:
            if getattr(self, attr) is None:
                setattr(self, attr, np.empty(0, dtype=dtype))
            else:
                setattr(self, attr, np.asarray(getattr(self, attr), dtype=dtype))

    def __eq__(self, other):
        """Checks that all attributes of two class instances are the same.

        This overloads the default dataclass `__eq__` method to include an
        appopriate check for vector (numpy) attributes.

        Parameters
        ----------
        other : obj
            Other instance of the same object class

        Returns
        -------
        bool
            `True` if all attributes of both objects are identical
        """
        if self.__class__ != other.__class__:
            return False

        for k, v in self.__dict__.items():
            v_other = getattr(other, k)
            if isinstance(v, np.ndarray):
                if v.shape != v_other.shape or (v_other != v).any():
                    return False
            elif v_other != v:
                return False

        return True
