"""FeedsManager model.

A feeds manager is an external service that submits job proposals. Its public
key authenticates messages received from it.
"""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Integer, LargeBinary, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from feeds.stores.postgres import Base

# SQLite only autoincrements INTEGER PRIMARY KEY and has no array type.
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")
StringArray = ARRAY(String).with_variant(JSON(), "sqlite")


class FeedsManagerRecord(Base):
    """Registered feeds manager."""

    __tablename__ = "feeds_managers"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)

    uri: Mapped[str] = mapped_column(Text)
    name: Mapped[str] = mapped_column(Text)

    # Ed25519 public key, 32 bytes
    public_key: Mapped[bytes] = mapped_column(LargeBinary)

    # Ordered job type names, e.g. ["fluxmonitor", "offchainreporting"]
    job_types: Mapped[list[str]] = mapped_column(StringArray)

    network: Mapped[str] = mapped_column(Text)
    is_ocr_bootstrap_peer: Mapped[bool] = mapped_column(default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<FeedsManager {self.id} {self.name} ({self.network})>"
