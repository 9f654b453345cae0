# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from appel.models.user import User  # noqa: F401  (doit précéder school_class)
from appel.models.school_class import SchoolClass, ClassStudent  # noqa: F401
from appel.models.attendance_code import AttendanceCode  # noqa: F401
from appel.models.attendance import Attendance  # noqa: F401
