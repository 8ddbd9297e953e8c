from cabanabook.modules.calendar_sync.sync import CalendarSyncer, export_ical

__all__ = ["CalendarSyncer", "export_ical"]
