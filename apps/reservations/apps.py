from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.reservations"
    verbose_name = "예약"

    def ready(self) -> None:
        from shared.application.message_bus import message_bus

        from .application import command_handlers as handlers
        from .application.event_handlers import EVENT_HANDLERS

        commands = {
            handlers.CreateReservationCommand: handlers.CreateReservationHandler(),
            handlers.UpdateReservationCommand: handlers.UpdateReservationHandler(),
            handlers.CancelReservationCommand: handlers.CancelReservationHandler(),
            handlers.DeleteReservationCommand: handlers.DeleteReservationHandler(),
            handlers.CreatePrevisitCommand: handlers.CreatePrevisitHandler(),
            handlers.UpdatePrevisitCommand: handlers.UpdatePrevisitHandler(),
            handlers.DeletePrevisitCommand: handlers.DeletePrevisitHandler(),
            handlers.ApproveReservationCommand: handlers.ApproveReservationHandler(),
            handlers.RejectReservationCommand: handlers.RejectReservationHandler(),
            handlers.CompleteReservationCommand: handlers.CompleteReservationHandler(),
        }
        for command_type, handler in commands.items():
            # ready() can run more than once (test runners, autoreload).
            message_bus.register_command_handler(command_type, handler.handle, replace=True)

        for event_type, subscribers in EVENT_HANDLERS.items():
            for subscriber in subscribers:
                message_bus.register_event_handler(event_type, subscriber)
