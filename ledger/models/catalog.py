from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ledger.db.base_class import Base


class Crowdfunding(Base):
    __tablename__ = "crowdfundings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    goal_money = Column(Integer, nullable=False, default=0)
    goal_people = Column(Integer, nullable=False, default=0)

    packages = relationship(
        "Package", back_populates="crowdfunding", lazy="selectin"
    )


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    crowdfunding_id = Column(
        Integer, ForeignKey("crowdfundings.id"), nullable=False, index=True
    )
    name = Column(String, nullable=False)

    crowdfunding = relationship("Crowdfunding", back_populates="packages")
    options = relationship("PackageOption", back_populates="package", lazy="selectin")


class PackageOption(Base):
    __tablename__ = "package_options"

    id = Column(Integer, primary_key=True, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False, index=True)
    name = Column(String, nullable=True)

    min_amount = Column(Integer, nullable=False, default=0)
    max_amount = Column(Integer, nullable=False, default=1)
    # Цена за единицу в раппенах / центах
    price = Column(Integer, nullable=False)
    user_price = Column(Boolean, nullable=False, default=False)
    min_user_price = Column(Integer, nullable=False, default=0)

    package = relationship("Package", back_populates="options")
