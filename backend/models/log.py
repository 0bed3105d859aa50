from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base


# Audit trail of back-office actions (product edits, stock movements, role changes)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Acting user; kept as NULL once the account is removed
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # e.g. STOCK_ADJUSTMENT / inventory / SUCCESS
    action = Column(String(50), nullable=False, index=True)
    resource = Column(String(50), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="SUCCESS", index=True)
    ip = Column(String(64), nullable=True)

    # Action specific context (ids, counts, failure reasons)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

    @property
    def user_email(self):
        return self.user.email if self.user else None
