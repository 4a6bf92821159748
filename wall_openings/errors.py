"""Exceptions raised around the planning core."""


class WallOpeningsError(Exception):
    """Base class for all errors of this package."""


class PreconditionError(WallOpeningsError):
    """The run cannot start; reported to the user and never retried."""


class MissingSourceModelError(PreconditionError):
    def __init__(self, title: str):
        super().__init__(f"Source model '{title}' not found")
        self.title = title


class MissingOpeningFamilyError(PreconditionError):
    def __init__(self, family_name: str):
        super().__init__(f'Opening family "{family_name}" not found')
        self.family_name = family_name


class MissingViewError(PreconditionError):
    def __init__(self):
        super().__init__("No non-template 3D view found")


class ExecutionError(WallOpeningsError):
    """Creating an opening or setting one of its parameters failed."""
