from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all
from backend.app.models.user import User  # noqa: F401
from backend.app.models.company import Company, CompanyMember  # noqa: F401
from backend.app.models.project import Project  # noqa: F401
from backend.app.models.milestone import Milestone  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.payment import Payment  # noqa: F401
