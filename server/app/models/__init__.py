from .role import Role  # noqa: F401
from .user import User  # noqa: F401
from .member import Member  # noqa: F401
from .member_audit import MemberAudit  # noqa: F401
from .attendance import Attendance  # noqa: F401
from .due import Due  # noqa: F401
from .activity import Activity  # noqa: F401
