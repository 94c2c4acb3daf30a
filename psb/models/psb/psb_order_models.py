from sqlalchemy import Column, Integer, String, Text, Enum as SAEnum, Index
from psb.core.db import Base
from psb.models.base.mixins import TimestampMixin, AuditMixin
from psb.models.enums.psb_order_status import PSBOrderStatus


class PSBOrder(Base, TimestampMixin, AuditMixin):
    __tablename__ = "psb_orders"

    id = Column(Integer, primary_key=True)

    # Sequential display number, max(no) + 1 at creation
    no = Column(Integer, nullable=False, unique=True, index=True)
    order_no = Column(String(100), nullable=False, index=True)

    customer_name = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(30), nullable=False, index=True)
    address = Column(Text, nullable=False)

    cluster = Column(String(100), nullable=False, index=True)
    sto = Column(String(100), nullable=False, index=True)
    package = Column(String(150), nullable=False)

    status = Column(
        SAEnum(
            PSBOrderStatus,
            name="psb_order_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=PSBOrderStatus.PENDING,
        index=True,
    )
    technician = Column(String(150), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_psb_order_cluster_status", "cluster", "status"),
    )

    def __repr__(self):
        return f"<PSBOrder id={self.id} no={self.no} order_no={self.order_no} status={self.status}>"
