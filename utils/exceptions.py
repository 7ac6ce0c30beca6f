"""
Custom exception hierarchy for the model registration framework.
"""

class ModelRegistryException(Exception):
    """Base exception for all framework errors."""
    pass

class ConfigurationError(ModelRegistryException):
    """Model registration or configuration validation failed."""
    pass

class ModeError(ConfigurationError):
    """Mode is not part of the model's mode set (or is still 'unknown')."""
    pass

class EngineError(ConfigurationError):
    """Engine is not listed in the engine table for the resolved mode."""
    pass

class ProtectedArgumentError(ConfigurationError):
    """A user-supplied argument collides with a protected fit argument."""
    pass

class DependencyError(ConfigurationError):
    """A package required by the engine cannot be imported."""
    pass

class DataValidationError(ModelRegistryException):
    """Data validation failed."""
    pass

class ModelTrainingError(ModelRegistryException):
    """Model training failed."""
    pass

class PredictionError(ModelRegistryException):
    """Prediction generation failed."""
    pass

class PredictionShapeError(PredictionError):
    """Post-processed prediction output does not have the expected shape."""
    pass
