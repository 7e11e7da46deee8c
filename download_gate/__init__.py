"""Download Gate package.

Single-use, time-limited download tokens for purchased digital reports.
"""

from .errors import ErrorKind
from .issuer import IssueResult, TokenIssuer
from .models import Artifact, ArtifactRef, Purchase, TokenRecord
from .redeemer import RedeemResult, TokenRedeemer
from .service import DownloadService

__all__ = [
    "ErrorKind",
    "TokenIssuer",
    "IssueResult",
    "TokenRedeemer",
    "RedeemResult",
    "Purchase",
    "Artifact",
    "ArtifactRef",
    "TokenRecord",
    "DownloadService",
]
