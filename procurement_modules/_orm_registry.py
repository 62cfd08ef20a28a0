"""
Module ORM Registry (``procurement_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before
``procurement_kernel.db.engine.create_tables()`` runs ``create_all``.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily by the kernel engine helper;
never imported at kernel module load time.
"""


def import_all_orm_models() -> None:
    """Import the kernel sequence table and every ``procurement_modules.*.orm``.

    Idempotent -- repeated calls are harmless.
    """
    import procurement_kernel.services.sequence_service  # noqa: F401
    # fmt: off
    import procurement_modules.catalog.orm  # noqa: F401
    import procurement_modules.enquiry.orm  # noqa: F401
    import procurement_modules.quotation.orm  # noqa: F401
    import procurement_modules.loi.orm  # noqa: F401
    import procurement_modules.order.orm  # noqa: F401
    import procurement_modules.invoice.orm  # noqa: F401
    import procurement_modules.payment.orm  # noqa: F401
    # fmt: on
