"""Accepted column names per canonical field, most specific first.

Headers are matched after ``normalize_header`` so entries are lower-case with
underscores and no punctuation (``Acompañante`` arrives as ``acompaante``).
"""

from __future__ import annotations

from typing import Final

type Synonyms = tuple[str, ...]

# Shared ---------------------------------------------------------------------

NOTES: Final[Synonyms] = ("notas", "notes", "observaciones", "comentarios")
GUEST_LEGACY_ID: Final[Synonyms] = ("id_huesped", "guest_id", "huesped_id")
GUEST_NAME: Final[Synonyms] = (
    "huesped",
    "guest",
    "guest_name",
    "nombre_completo",
    "nombre_huesped",
)
VENDOR_LEGACY_ID: Final[Synonyms] = ("id_proveedor", "vendor_id", "id_vendedor", "proveedor_id")
VENDOR_NAME: Final[Synonyms] = (
    "proveedor",
    "vendor",
    "vendor_name",
    "nombre_proveedor",
    "vendedor",
    "nombre_vendedor",
)
GUEST_STATUS: Final[Synonyms] = ("estado_huesped", "guest_status", "estado", "status")
VENDOR_STATUS: Final[Synonyms] = ("estado_vendedor", "estado_vendodor", "vendor_status")
BILLED_DATE: Final[Synonyms] = ("fecha_facturado", "billed_date", "fecha_cobro")
PAID_DATE: Final[Synonyms] = ("fecha_pagado", "paid_date", "fecha_pago")
TIME: Final[Synonyms] = ("hora", "time", "hora_inicio", "start_time")

# Guests ---------------------------------------------------------------------

GUEST_ID: Final[Synonyms] = ("id_huesped", "guest_id", "id", "row_id", "_rownum")
FULL_NAME: Final[Synonyms] = ("nombre_completo", "full_name", "name", "guest_name")
FIRST_NAME: Final[Synonyms] = ("nombre", "first_name")
LAST_NAME: Final[Synonyms] = ("apellido", "apellidos", "last_name")
EMAIL: Final[Synonyms] = ("email", "correo", "e_mail")
PHONE: Final[Synonyms] = ("telefono", "phone", "tel", "mobile", "celular")
NATIONALITY: Final[Synonyms] = ("pais", "nationality", "nacionalidad", "country")
COMPANION: Final[Synonyms] = ("acompaante", "companion", "companion_name")
VIP: Final[Synonyms] = ("vip",)
ARRIVALS: Final[Synonyms] = ("llegadas", "arrivals")
NIGHTS: Final[Synonyms] = ("noches", "nights")
REVENUE: Final[Synonyms] = ("room_revenue", "revenue", "ingresos")

# Vendors --------------------------------------------------------------------

VENDOR_ID: Final[Synonyms] = ("id_vendedor", "vendor_id", "id", "row_id", "_rownum")
VENDOR_OWN_NAME: Final[Synonyms] = ("nombre", "name", "vendor_name")
VENDOR_TYPE: Final[Synonyms] = ("tipo", "type", "categoria")
COLOR: Final[Synonyms] = ("nombrecolor", "color_code", "color", "colour")
ACTIVE: Final[Synonyms] = ("activo", "is_active", "active")

# Transfers ------------------------------------------------------------------

TRANSFER_ID: Final[Synonyms] = ("id_traslado", "transfer_id", "id", "row_id", "_rownum")
TRANSFER_DATE: Final[Synonyms] = ("fecha", "date", "date_traslado", "fecha_traslado")
TRANSFER_TIME: Final[Synonyms] = ("hora", "time", "hora_traslado")
ORIGIN: Final[Synonyms] = ("origen", "origin", "lugar_origen", "from")
DESTINATION: Final[Synonyms] = ("destino", "destination", "lugar_destino", "to")
PASSENGERS: Final[Synonyms] = ("num_passengers", "pasajeros", "pax", "cantidad_pasajeros")
PRICE: Final[Synonyms] = ("precio", "price", "costo", "total", "monto")

# Tour bookings --------------------------------------------------------------

TOUR_ID: Final[Synonyms] = ("id_actividad", "tour_booking_id", "booking_id", "id", "row_id")
ACTIVITY_DATE: Final[Synonyms] = ("fecha", "date", "fecha_actividad", "activity_date")
ACTIVITY_NAME: Final[Synonyms] = (
    "nombre_de_la_actividad",
    "actividad",
    "activity",
    "tour",
    "product",
    "product_name",
    "nombre_actividad",
)
PARTICIPANTS: Final[Synonyms] = (
    "numero_de_participantes",
    "num_guests",
    "participantes",
    "pax",
    "personas",
)
TOTAL_PRICE: Final[Synonyms] = ("precio_total", "total_price", "precio", "price", "total")

# Special requests -----------------------------------------------------------

REQUEST_ID: Final[Synonyms] = ("id_solicitud", "request_id", "id", "row_id")
REQUEST_DATE: Final[Synonyms] = ("fecha", "date", "fecha_solicitud", "request_date")
REQUEST_TEXT: Final[Synonyms] = ("solicitud", "request", "descripcion", "description", "pedido")
