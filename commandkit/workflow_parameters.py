"""Parameters added when an invocation is redirected to job/remote execution.

Metadata only: the dispatcher reads this table, nothing here acts on it.
"""

from __future__ import annotations

WORKFLOW_PARAMETERS: tuple[tuple[str, str], ...] = (
    ("PSComputerName", "str[]"),
    ("JobName", "str"),
    ("PSApplicationName", "str"),
    ("PSCredential", "Credential"),
    ("PSPort", "uint"),
    ("PSConfigurationName", "str"),
    ("PSConnectionURI", "str[]"),
    ("PSSessionOption", "SessionOption"),
    ("PSAuthentication", "AuthenticationMechanism"),
    ("PSAuthenticationLevel", "AuthenticationLevel"),
    ("PSCertificateThumbprint", "str"),
    ("PSConnectionRetryCount", "uint"),
    ("PSConnectionRetryIntervalSec", "uint"),
    ("PSRunningTimeoutSec", "int"),
    ("PSElapsedTimeoutSec", "int"),
    ("PSPersist", "bool"),
    ("PSPrivateMetadata", "object"),
    ("InputObject", "object"),
    ("PSParameterCollection", "dict"),
    ("AsJob", "bool"),
    ("PSUseSSL", "bool"),
    ("PSAllowRedirection", "bool"),
)


def workflow_parameter_names() -> tuple[str, ...]:
    return tuple(name for name, _type_name in WORKFLOW_PARAMETERS)
