from .iam import (
    ProjectRole as ProjectRole,
    User as User,
    Project as Project,
    Membership as Membership,
    ApiKey as ApiKey,
)

from .traces import (
    TraceModel as TraceModel,
    ObservationModel as ObservationModel,
)
from .scores import ScoreModel as ScoreModel
