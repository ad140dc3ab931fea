from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Integer, Table, ForeignKey, Text
from sqlalchemy.orm import relationship

# Ordered watch history; the autoincrement id keeps insertion order
watch_history_table = Table(
    "watch_history",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("video_id", String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False),
)


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)  # always lowercase
    email = Column(String(255), nullable=False, unique=True, index=True)
    fullname = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False)  # media-host url
    cover_image = Column(String(1024), nullable=False, default="")
    # single active session: the one refresh token that is currently valid
    refresh_token = Column(Text, nullable=True)

    watch_history = relationship(
        "Video",
        secondary=watch_history_table,
        order_by=watch_history_table.c.id,
    )

    videos = relationship("Video", back_populates="owner", passive_deletes=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
