"""Domain 1: Dormitory, Rooms, Tenants and Meter Readings"""

from sqlalchemy import Column, String, Text, Numeric, Integer, DateTime, ForeignKey, UniqueConstraint, Enum, Uuid
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, DormitoryScopedMixin, StatusMixin
from app.models.enums import RoomStatus, TenantStatus, MeterType, enum_values


class Dormitory(BaseModel, StatusMixin):
    """
    Dormitory - the multi-tenant anchor.
    Holds the utility rates and late fee used when bills are generated.
    """
    __tablename__ = "dormitories"

    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)

    # Billing rates
    default_rent = Column(Numeric(10, 2), nullable=False, default=0)
    water_rate = Column(Numeric(10, 2), nullable=False, default=0)
    electric_rate = Column(Numeric(10, 2), nullable=False, default=0)
    late_fee_per_day = Column(Numeric(10, 2), nullable=False, default=20)

    # Relationships
    rooms = relationship("Room", back_populates="dormitory", cascade="all, delete-orphan")
    tenants = relationship("Tenant", back_populates="dormitory", cascade="all, delete-orphan")
    bills = relationship("Bill", back_populates="dormitory", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Dormitory {self.name}>"


class Room(BaseModel, DormitoryScopedMixin):
    """Rentable room inside a dormitory"""
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("dormitory_id", "number", name="uq_rooms_dormitory_number"),
    )

    number = Column(String(50), nullable=False)
    floor = Column(Integer, nullable=True)
    monthly_rent = Column(Numeric(10, 2), nullable=True)
    status = Column(
        Enum(RoomStatus, name="room_status", values_callable=enum_values),
        default=RoomStatus.AVAILABLE,
        nullable=False,
        index=True,
    )

    # Relationships
    dormitory = relationship("Dormitory", back_populates="rooms")
    tenants = relationship("Tenant", back_populates="room")

    def __repr__(self) -> str:
        return f"<Room {self.number} - {self.status}>"


class Tenant(BaseModel, DormitoryScopedMixin):
    """Person renting a room"""
    __tablename__ = "tenants"

    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    line_user_id = Column(String(100), nullable=True)
    status = Column(
        Enum(TenantStatus, name="tenant_status", values_callable=enum_values),
        default=TenantStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Relationships
    dormitory = relationship("Dormitory", back_populates="tenants")
    room = relationship("Room", back_populates="tenants", lazy="selectin")

    @property
    def room_number(self):
        return self.room.number if self.room is not None else None

    def __repr__(self) -> str:
        return f"<Tenant {self.full_name} - {self.status}>"


class MeterReading(BaseModel, DormitoryScopedMixin):
    """
    Utility meter reading for one room and one meter type.
    units_used is always current_reading - previous_reading.
    """
    __tablename__ = "meter_readings"

    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    meter_type = Column(
        Enum(MeterType, name="meter_type", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    previous_reading = Column(Numeric(12, 2), nullable=False, default=0)
    current_reading = Column(Numeric(12, 2), nullable=False)
    units_used = Column(Numeric(12, 2), nullable=False)
    reading_date = Column(DateTime, nullable=False, index=True)
    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="SET NULL"), nullable=True)

    def __repr__(self) -> str:
        return f"<MeterReading {self.meter_type} {self.previous_reading}->{self.current_reading}>"
