import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base, utcnow


def generate_id():
    """Generate a UUID string primary key"""
    return str(uuid.uuid4())


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    education = Column(Text, nullable=True)
    experience_years = Column(Integer, nullable=True)
    specialty = Column(String(255), nullable=True)
    country = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)
    timezone = Column(String(100), nullable=True)
    languages = Column(JSON, default=list, nullable=False)
    bio = Column(Text, nullable=True)
    consultation_mode = Column(String(50), default="both", nullable=False)  # virtual, physical, both
    availability = Column(JSON, default=list, nullable=False)  # [{day, start, end}]
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    ratings = relationship("DoctorRating", back_populates="doctor", cascade="all, delete-orphan")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    patient_external_id = Column(String(255), index=True, nullable=False)  # Supabase user id
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, default=30, nullable=False)
    type = Column(String(20), nullable=False)  # physical, virtual, follow-up
    status = Column(String(20), default="pending", nullable=False)
    location = Column(Text, nullable=True)
    meeting_url = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    attachments = Column(JSON, default=list, nullable=False)
    reschedule_reason = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    video_call = relationship("VideoCall", back_populates="appointment", uselist=False)


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    patient_external_id = Column(String(255), index=True, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, concluded, blocked
    reason = Column(Text, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan", order_by="Message.created_at"
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    conversation_id = Column(
        String(36), ForeignKey("conversations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_type = Column(String(20), nullable=False)  # doctor, patient
    sender_id = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)  # "[encrypted]" placeholder when encrypted_payload is set
    attachments = Column(JSON, default=list, nullable=False)
    encrypted_payload = Column(JSON, nullable=True)  # {ciphertext, iv, tag}
    delivered_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")


class DoctorRating(Base):
    __tablename__ = "doctor_ratings"
    __table_args__ = (UniqueConstraint("conversation_id", "patient_external_id", name="uq_rating_conversation_patient"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    patient_external_id = Column(String(255), nullable=False)
    conversation_id = Column(String(36), ForeignKey("conversations.id", ondelete="SET NULL"), nullable=True)
    score = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    doctor = relationship("Doctor", back_populates="ratings")


class PatientRecord(Base):
    __tablename__ = "patient_records"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    patient_name = Column(String(255), nullable=False)
    patient_email = Column(String(255), nullable=True)
    patient_phone = Column(String(50), nullable=True)
    patient_address = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    patient_external_id = Column(String(255), index=True, nullable=True)
    on_platform = Column(Boolean, default=False, nullable=False)
    qr_code = Column(String(100), index=True, nullable=True)
    consultations = Column(Integer, default=0, nullable=False)
    treatments = Column(JSON, default=list, nullable=False)
    prescriptions = Column(JSON, default=list, nullable=False)
    attachments = Column(JSON, default=list, nullable=False)  # [{name, size, url}]
    notes = Column(Text, nullable=True)
    blood_group = Column(String(10), nullable=True)
    height = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    unread = Column(Boolean, default=True, nullable=False)
    meta = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class VideoCall(Base):
    __tablename__ = "video_calls"

    id = Column(String(36), primary_key=True, default=generate_id)
    channel_name = Column(String(255), unique=True, nullable=False)
    type = Column(String(20), nullable=False)  # appointment, instant, doctor_lounge
    status = Column(String(20), default="scheduled", nullable=False)  # scheduled, live, ended
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="SET NULL"), index=True, nullable=True)
    patient_external_id = Column(String(255), nullable=True)
    appointment_id = Column(
        String(36), ForeignKey("appointments.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    title = Column(String(255), nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    appointment = relationship("Appointment", back_populates="video_call")
    participants = relationship("VideoCallParticipant", back_populates="call", cascade="all, delete-orphan")


class VideoCallParticipant(Base):
    __tablename__ = "video_call_participants"
    __table_args__ = (
        UniqueConstraint("call_id", "participant_type", "participant_id", name="uq_call_participant"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    call_id = Column(String(36), ForeignKey("video_calls.id", ondelete="CASCADE"), index=True, nullable=False)
    participant_type = Column(String(20), nullable=False)  # doctor, patient
    participant_id = Column(String(255), nullable=False)
    uid = Column(String(64), nullable=True)  # Agora RTC uid
    role = Column(String(20), nullable=True)
    joined_at = Column(DateTime, default=utcnow, nullable=True)
    left_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    call = relationship("VideoCall", back_populates="participants")


class ChatbotConversation(Base):
    __tablename__ = "chatbot_conversations"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(255), default="New chat", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    messages = relationship(
        "ChatbotMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ChatbotMessage.created_at",
    )


class ChatbotMessage(Base):
    __tablename__ = "chatbot_messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    conversation_id = Column(
        String(36), ForeignKey("chatbot_conversations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    role = Column(String(20), nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    meta = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    conversation = relationship("ChatbotConversation", back_populates="messages")
    reactions = relationship("ChatbotMessageReaction", cascade="all, delete-orphan")


class ChatbotMessageReaction(Base):
    __tablename__ = "chatbot_message_reactions"
    __table_args__ = (UniqueConstraint("message_id", "doctor_id", "reaction", name="uq_chatbot_reaction"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    message_id = Column(
        String(36), ForeignKey("chatbot_messages.id", ondelete="CASCADE"), index=True, nullable=False
    )
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    reaction = Column(String(20), nullable=False)  # like, save
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CollabConversation(Base):
    __tablename__ = "collab_conversations"
    __table_args__ = (UniqueConstraint("doctor_id", "peer_doctor_id", name="uq_collab_pair"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    # Pair is stored ordered: doctor_id < peer_doctor_id
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    peer_doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    doctor = relationship("Doctor", foreign_keys=[doctor_id])
    peer_doctor = relationship("Doctor", foreign_keys=[peer_doctor_id])
    messages = relationship(
        "CollabMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="CollabMessage.created_at",
    )


class CollabMessage(Base):
    __tablename__ = "collab_messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    conversation_id = Column(
        String(36), ForeignKey("collab_conversations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), default="text", nullable=False)  # text, patient_card
    content = Column(Text, nullable=True)
    meta = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    conversation = relationship("CollabConversation", back_populates="messages")
