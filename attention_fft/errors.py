"""Error types raised by the experiment harness.

Both fatal errors abort the experiment: nothing catches them below
`harness.main`, which reports the message and exits non-zero.
"""


class ExperimentError(Exception):
    """Base class for experiment failures"""


class FatalLoadError(ExperimentError):
    """A dataset could not be loaded"""


class FatalArtifactError(ExperimentError):
    """A plot artifact could not be written"""
