from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    """Cleaners and homeowners share one table; display fields arrive decrypted"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    expo_push_token = Column(String(255), nullable=True)  # Device token for push notifications
    created_at = Column(DateTime, server_default=func.now())


class Home(Base):
    __tablename__ = "user_homes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)


class Appointment(Base):
    """A cleaning appointment; single-cleaner jobs track completion on this row"""

    __tablename__ = "user_appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # Homeowner
    home_id = Column(Integer, ForeignKey("user_homes.id"), nullable=True)

    # Scheduling
    date = Column(String(10), nullable=False)  # YYYY-MM-DD, service-local
    time_window = Column(String(20), default="anytime", nullable=True)  # anytime, 10-3, 11-4, 12-2

    # Assignment
    employees_assigned = Column(JSON, default=list, nullable=True)  # Ordered cleaner ids
    has_been_assigned = Column(Boolean, default=False, nullable=False)
    is_multi_cleaner_job = Column(Boolean, default=False, nullable=False)

    # Lifecycle flags
    completed = Column(Boolean, default=False, nullable=False)
    was_cancelled = Column(Boolean, default=False, nullable=False, index=True)

    # Completion workflow: not_started → in_progress → submitted → approved/disputed
    completion_status = Column(String(50), default="not_started", nullable=False, index=True)
    job_started_at = Column(DateTime, nullable=True)
    completion_submitted_at = Column(DateTime, nullable=True)

    # Auto-complete tracking
    scheduled_end_time = Column(DateTime, nullable=True, index=True)  # Cached from date + time_window
    auto_complete_at = Column(DateTime, nullable=True, index=True)  # Cleared once submitted
    auto_complete_reminders_sent = Column(Integer, default=0, nullable=False)
    last_reminder_sent_at = Column(DateTime, nullable=True)
    auto_completed_by_system = Column(Boolean, default=False, nullable=False)
    auto_approval_expires_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    home = relationship("Home")
    cleaner_completions = relationship("CleanerJobCompletion", back_populates="appointment")


class CleanerJobCompletion(Base):
    """Per-cleaner completion record for multi-cleaner appointments"""

    __tablename__ = "cleaner_job_completions"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("user_appointments.id"), nullable=False, index=True)
    cleaner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Coarse lifecycle: assigned → started → completed
    status = Column(String(50), default="assigned", nullable=False, index=True)
    job_started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Mirrors the appointment-level completion workflow, per cleaner
    completion_status = Column(String(50), default="not_started", nullable=False, index=True)
    completion_submitted_at = Column(DateTime, nullable=True)
    auto_complete_at = Column(DateTime, nullable=True, index=True)
    auto_complete_reminders_sent = Column(Integer, default=0, nullable=False)
    last_reminder_sent_at = Column(DateTime, nullable=True)
    auto_completed_by_system = Column(Boolean, default=False, nullable=False)
    auto_approval_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointment = relationship("Appointment", back_populates="cleaner_completions")
    cleaner = relationship("User", foreign_keys=[cleaner_id])


class PricingConfig(Base):
    """Platform-wide tunables; only the newest active row is read"""

    __tablename__ = "pricing_configs"

    id = Column(Integer, primary_key=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Auto-complete settings (null means "use the default")
    auto_complete_hours_after_end = Column(Integer, nullable=True)
    auto_complete_reminder_intervals = Column(JSON, nullable=True)  # Minutes after scheduled end
    completion_auto_approval_hours = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Notification(Base):
    """In-app notification shown in the user's notification feed"""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    notification_type = Column(String(50), nullable=True)  # auto_complete_reminder, job_auto_completed, ...
    message = Column(Text, nullable=False)
    context = Column(JSON, nullable=True)  # e.g. {"appointment_id": 12}
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
