from .attributes import (  # noqa: F401
    AttributeArity,
    AttributeOp,
    AttributeValue,
    MultiValuedAttribute,
    SingleValuedAttribute,
)
from .client import DirectoryClient  # noqa: F401
from .exceptions import (  # noqa: F401
    DirectoryProtocolError,
    DuplicateValueError,
    InvalidOperation,
)
from .records import DirectoryRecord  # noqa: F401
