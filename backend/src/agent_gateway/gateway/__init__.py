from .approval_gate import ApprovalGate
from .dispatcher import ResumeDispatcher
from .flattener import Segment, flatten, stream_segment
from .normalizer import Origin, normalize, unwrap
from .service import ChatGateway

__all__ = [
    "ApprovalGate",
    "ChatGateway",
    "Origin",
    "ResumeDispatcher",
    "Segment",
    "flatten",
    "normalize",
    "stream_segment",
    "unwrap",
]
