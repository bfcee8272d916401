"""
Error taxonomy for the design-generation pipeline.

Remote failures are raised; malformed generative output is usually turned
into a sentinel dict carrying an ``error`` key by the stage that saw it.
"""


class CadPipelineError(Exception):
    """Base class for every pipeline error."""


class RemoteCallError(CadPipelineError):
    """Network/auth/configuration failure talking to an Azure backend."""


class AnalysisError(RemoteCallError):
    """The vision backend could not analyze an image."""


class SpeechRecognitionError(RemoteCallError):
    """The speech backend failed or recognized nothing."""


class ParseError(CadPipelineError):
    """Generative text did not contain a decodable JSON object."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class InterpreterError(CadPipelineError):
    pass


class DesignerError(CadPipelineError):
    pass


class CodeEmitterError(CadPipelineError):
    pass


class MultimodalMergeError(CadPipelineError):
    pass


class PipelineStageError(CadPipelineError):
    """A labeled failure of one Orchestrator stage."""

    def __init__(self, stage: str, cause):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} stage failed: {cause}")
