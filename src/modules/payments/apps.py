from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"
    verbose_name = "Pagos"

    def ready(self) -> None:
        from modules.payments import handlers
        from modules.payments.events import (
            PaymentCreated,
            PaymentRejected,
            PaymentVerified,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(PaymentCreated, handlers.payment_created_handler)
        event_bus.subscribe(PaymentVerified, handlers.payment_verified_handler)
        event_bus.subscribe(PaymentRejected, handlers.payment_rejected_handler)
