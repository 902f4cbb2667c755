from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
from uuid import uuid4
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


UserRole = Literal["creator", "expert", "admin", "pending", "influencer"]
Visibility = Literal["public", "private"]

CREATOR_ROLES = ("creator", "influencer")

# --- Users / profiles ---
# Documents written by the web client use camelCase keys; AliasChoices reads both

class ExpertiseInfo(BaseModel):
    main_type: str = Field(validation_alias=AliasChoices("main_type", "mainType"))
    sub_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("sub_type", "subType"))
    description: Optional[str] = None
    skills: List[str] = []
    years_of_experience: Optional[int] = Field(default=None, validation_alias=AliasChoices("years_of_experience", "yearsOfExperience"))
    portfolio_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("portfolio_url", "portfolioUrl"))

class CreatorInfo(BaseModel):
    main_type: str = Field(validation_alias=AliasChoices("main_type", "mainType"))
    sub_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("sub_type", "subType"))
    description: Optional[str] = None
    platforms: List[str] = []
    # bucket code: micro, small, mid, large, xl, xxl
    audience_size: Optional[str] = Field(default=None, validation_alias=AliasChoices("audience_size", "audienceSize"))

class SocialLinks(BaseModel):
    youtube: str = ""
    instagram: str = ""
    twitch: str = ""
    tiktok: str = ""
    twitter: str = ""
    github: str = ""
    linkedin: str = ""

class ProfileSettings(BaseModel):
    email_visibility: Visibility = "private"
    phone_visibility: Visibility = "private"
    allow_messages: bool = True
    allow_notifications: bool = True

class Rating(BaseModel):
    average: float = 0.0
    count: int = 0

class UserBase(BaseModel):
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("display_name", "displayName", "name"))
    photo_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("photo_url", "photoURL", "avatar"))
    phone: Optional[str] = None
    description: str = Field(default="", validation_alias=AliasChoices("description", "bio"))
    location: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        return value or None

    @field_validator("description", "location", mode="before")
    @classmethod
    def _null_text(cls, value):
        return value or ""

class UserCreate(UserBase):
    role: UserRole = "pending"

class User(UserBase):
    # Stored documents carry their id; only ones written here also carry `uid`
    uid: str = Field(validation_alias=AliasChoices("uid", "id"))
    role: UserRole = "pending"
    expertise: Optional[ExpertiseInfo] = None
    creator: Optional[CreatorInfo] = None
    skills: List[str] = []
    socials: SocialLinks = Field(default_factory=SocialLinks)
    settings: ProfileSettings = Field(default_factory=ProfileSettings)
    verified: bool = False
    rating: Rating = Field(default_factory=Rating)
    completed_jobs: int = 0
    is_available: bool = True
    onboarding_completed: bool = Field(default=False, validation_alias=AliasChoices("onboarding_completed", "onboardingCompleted"))
    created_at: datetime = Field(default_factory=_now, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @field_validator("rating", mode="before")
    @classmethod
    def _numeric_rating(cls, value):
        if value is None:
            return Rating()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return Rating(average=float(value), count=0)
        return value

class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    skills: Optional[List[str]] = None
    socials: Optional[Dict[str, str]] = None
    expertise: Optional[Dict[str, Any]] = None
    creator: Optional[Dict[str, Any]] = None

class OnboardingRequest(BaseModel):
    role: Literal["creator", "expert"]
    display_name: str
    description: str = ""
    skills: List[str] = []
    expertise: Optional[ExpertiseInfo] = None
    creator: Optional[CreatorInfo] = None

class UnifiedProfile(BaseModel):
    """Public view of a `users` document, as shown on profile pages and cards."""
    uid: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    description: str = ""
    role: str = "creator"
    expertise: Optional[ExpertiseInfo] = None
    creator: Optional[CreatorInfo] = None
    type_label: Optional[str] = None
    sub_type_label: Optional[str] = None
    audience_label: Optional[str] = None
    skills: List[str] = []
    socials: SocialLinks = Field(default_factory=SocialLinks)
    settings: ProfileSettings = Field(default_factory=ProfileSettings)
    verified: bool = False
    rating: Optional[Rating] = None
    project_count: Optional[int] = None
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class DirectoryPage(BaseModel):
    profiles: List[UnifiedProfile]
    next_cursor: Optional[str] = None
    has_more: bool = False
    degraded: bool = False

# --- Profile layout blocks & portfolio ---

class BlockPosition(BaseModel):
    x: float = 0
    y: float = 0

class Block(BaseModel):
    id: str = Field(default_factory=_new_id)
    type: Literal["youtube", "social", "link", "image", "text"]
    content: Dict[str, Any] = {}
    position: BlockPosition = Field(default_factory=BlockPosition)

class MediaFile(BaseModel):
    url: str
    type: str = "image"
    name: Optional[str] = None

class PortfolioItemCreate(BaseModel):
    title: str
    description: str = ""
    media: List[MediaFile] = []
    tags: List[str] = []

class PortfolioItem(PortfolioItemCreate):
    id: str = Field(default_factory=_new_id)
    expert_id: str
    expert_name: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)

# --- Jobs ---

JobType = Literal["creator-post", "expert-post"]
JobCategory = Literal["editing", "filming", "scriptwriting", "thumbnail", "voiceover", "animation", "other"]
JobLocation = Literal["remote", "on-site", "hybrid"]
JobStatus = Literal["open", "in-progress", "completed", "canceled"]
ApplicantStatus = Literal["pending", "accepted", "rejected"]

class Attachment(BaseModel):
    name: str
    url: str
    type: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=_now)
    uploaded_by: Optional[str] = None

class JobApplicant(BaseModel):
    user_id: str
    cover_letter: Optional[str] = None
    proposed_budget: Optional[float] = None
    status: ApplicantStatus = "pending"
    applied_at: datetime = Field(default_factory=_now)

class JobBase(BaseModel):
    title: str
    description: str
    job_type: JobType
    category: JobCategory
    budget: float
    duration: str  # e.g. "1-2 weeks"
    location: JobLocation = "remote"
    skills: List[str] = []
    attachments: List[Attachment] = []

class JobCreate(JobBase):
    pass

class Job(JobBase):
    id: str = Field(default_factory=_new_id)
    creator_id: str
    status: JobStatus = "open"
    applicants: List[JobApplicant] = []
    assigned_to: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    views: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[JobCategory] = None
    budget: Optional[float] = None
    duration: Optional[str] = None
    location: Optional[JobLocation] = None
    skills: Optional[List[str]] = None
    status: Optional[JobStatus] = None
    attachments: Optional[List[Attachment]] = None

class JobApplication(BaseModel):
    cover_letter: Optional[str] = None
    proposed_budget: Optional[float] = None

class Pagination(BaseModel):
    total: int
    page: int
    pages: int

class JobList(BaseModel):
    jobs: List[Job]
    pagination: Pagination

# --- Projects ---

ProjectType = Literal["montage", "cadrage", "editing", "autre"]
ProjectStatus = Literal["ouvert", "en_cours", "termine", "annule"]

class ProjectApplication(BaseModel):
    provider_id: str
    message: Optional[str] = None
    price: Optional[float] = None
    date: datetime = Field(default_factory=_now)

class ProjectBase(BaseModel):
    title: str
    description: str
    budget: float
    type: ProjectType
    deadline: datetime
    files: List[str] = []

class ProjectCreate(ProjectBase):
    pass

class Project(ProjectBase):
    id: str = Field(default_factory=_new_id)
    creator_id: str
    provider_id: Optional[str] = None
    status: ProjectStatus = "ouvert"
    applications: List[ProjectApplication] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    budget: Optional[float] = None
    type: Optional[ProjectType] = None
    deadline: Optional[datetime] = None
    files: Optional[List[str]] = None
    status: Optional[ProjectStatus] = None

class ProjectApplicationCreate(BaseModel):
    message: Optional[str] = None
    price: Optional[float] = None

# --- Contracts ---

ContractStatus = Literal["pending", "active", "completed", "canceled", "disputed"]
PaymentStatus = Literal["pending", "deposit-paid", "final-paid", "refunded", "canceled"]
MilestoneStatus = Literal["pending", "completed", "paid"]

class Deliverable(BaseModel):
    description: str
    due_date: Optional[datetime] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None

class Milestone(BaseModel):
    description: str
    amount: float
    due_date: Optional[datetime] = None
    status: MilestoneStatus = "pending"

class FeedbackEntry(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    date: datetime = Field(default_factory=_now)

class ContractFeedback(BaseModel):
    creator_to_expert: Optional[FeedbackEntry] = None
    expert_to_creator: Optional[FeedbackEntry] = None

class ContractBase(BaseModel):
    job_id: str
    expert_id: str
    title: str
    description: str
    amount: float
    start_date: datetime
    end_date: datetime
    terms: str
    deliverables: List[Deliverable] = []
    milestones: List[Milestone] = []

class ContractCreate(ContractBase):
    pass

class Contract(ContractBase):
    id: str = Field(default_factory=_new_id)
    creator_id: str
    status: ContractStatus = "pending"
    creator_approved: bool = False
    expert_approved: bool = False
    payment_status: PaymentStatus = "pending"
    feedback: ContractFeedback = Field(default_factory=ContractFeedback)
    attachments: List[Attachment] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

class ContractList(BaseModel):
    contracts: List[Contract]
    pagination: Pagination

class ContractStatusUpdate(BaseModel):
    status: ContractStatus

class MilestoneStatusUpdate(BaseModel):
    status: MilestoneStatus

class FeedbackCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None

# --- Notifications ---

NotificationType = Literal["message", "offer", "system"]

class Notification(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    type: NotificationType = "system"
    title: str
    content: str
    link: Optional[str] = None
    read: bool = False
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)

# --- Messaging ---

class Conversation(BaseModel):
    id: str = Field(default_factory=_new_id)
    participant_ids: List[str]
    participant_key: str  # sorted participant ids joined by ":"
    job_id: Optional[str] = None
    status: Literal["active", "archived"] = "active"
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    unread: Dict[str, int] = {}
    created_at: datetime = Field(default_factory=_now)

class Message(BaseModel):
    id: str = Field(default_factory=_new_id)
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    is_read: bool = False
    timestamp: datetime = Field(default_factory=_now)
