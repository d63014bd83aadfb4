"""Disease lookup models: diseases with their local treatment and medicine."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text

from app.infrastructure.database import Base


class LocalPracticeTreatment(Base):
    __tablename__ = "local_practice_treatment"

    treatment_id = Column(Integer, primary_key=True, autoincrement=True)
    treatment = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class RicePlantMedicine(Base):
    __tablename__ = "rice_plant_medicine"

    medicine_id = Column(Integer, primary_key=True, autoincrement=True)
    rice_plant_medicine = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class RiceLeafDisease(Base):
    __tablename__ = "rice_leaf_disease"

    # Matches the class number emitted by the classifier
    rice_leaf_disease_id = Column(Integer, primary_key=True, autoincrement=False)
    rice_leaf_disease = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    medicine_id = Column(Integer, ForeignKey("rice_plant_medicine.medicine_id"), nullable=True)
    treatment_id = Column(Integer, ForeignKey("local_practice_treatment.treatment_id"), nullable=True)
