"""
Label patterns shared by several document schemas.

All patterns apply to folded text (lowercase, no accents, ``°`` as ``o``).
"""

# R.U.T. / RUT / R.U.T
RUT = r"\br\.?\s?u\.?\s?t\b\.?"

# N° / Nº / No. / Nro. / Num. / Numero (followed by what it numbers)
NUMBER = r"(?:n(?:o|ro|um|umero)?\.?)"

# Fecha de emision / Fecha Emision
FECHA_EMISION = r"\bfecha\s+(?:de\s+)?emision\b"

# Fecha de vencimiento / Fecha Vencimiento
FECHA_VENCIMIENTO = r"\bfecha\s+(?:de\s+)?vencimiento\b"

# Fecha de aceptacion
FECHA_ACEPTACION = r"\bfecha\s+(?:de\s+)?aceptacion\b"


def port(kind: str) -> tuple:
    """Labels for "Puerto de <kind>" and the abbreviated "Pto. <kind>"."""
    return (
        rf"\bpuerto\s+(?:de\s+)?{kind}\b",
        rf"\bpto\.?\s*(?:de\s+)?{kind}\b",
    )


# A following port label ends the current port value
PORT_STOP = (r"\bpuerto\b", r"\bpto\b")
