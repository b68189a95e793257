# factory_api/models/platform.py
# type: ignore

from sqlalchemy import Boolean, Column, Integer, String, Text

from factory_api.database import Base


# ***************************************************************
# Branch (Sucursal física con su propio almacén almN)
# ***************************************************************
class Branch(Base):
    """
    Sucursal. El Id coincide con el número de partición de inventario
    (Id=1 -> alm1). Se conserva el nombre de tabla del sistema original.
    """
    __tablename__ = "empresa"

    id = Column("Id", Integer, primary_key=True, autoincrement=False)
    name = Column("sucursal", String(100), nullable=False)
    shipping_info = Column("InfoEnvio", Text, nullable=True)
    app_visible = Column("AppVisible", Boolean, default=True, nullable=False)
    # Canal de contacto (WhatsApp) al que se avisa de los pedidos
    whatsapp_phone = Column("TelefonoWhatsapp", String(30), nullable=True)
