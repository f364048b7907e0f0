from datetime import date
import strawberry

@strawberry.input
class DateRangeInput:
    start_date: date
    end_date: date
