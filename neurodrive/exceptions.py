class NeuroDriveError(Exception):
    """Base for all neurodrive exceptions."""

    pass


# High-level families
class ConfigurationError(NeuroDriveError):
    """Invalid configuration bounds."""

    pass


class DimensionMismatchError(NeuroDriveError):
    """Network shapes that cannot be combined or seeded."""

    pass


class EvolutionError(NeuroDriveError):
    """Evolution process failures."""

    pass


class PersistenceError(NeuroDriveError):
    """Saved model could not be read or decoded."""

    pass


# Evolution subtypes
class EmptyPopulationError(EvolutionError):
    """Selection was asked to work on zero agents."""

    pass
