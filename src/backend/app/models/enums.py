from enum import Enum


class SortField(str, Enum):
    full_name = "full_name"
    age = "age"
    final_average = "final_average"
    first_semester = "first_semester"
    second_semester = "second_semester"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"
