"""Domain modules package."""

from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.booking import models as booking_models  # noqa: F401
from app.modules.reschedule import models as reschedule_models  # noqa: F401
from app.modules.scheduling import models as scheduling_models  # noqa: F401
