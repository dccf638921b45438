def validate_not_blank(value):
    if value is not None:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
    return value


def validate_stay_dates(check_in_date, check_out_date):
    if check_in_date and check_out_date and check_out_date <= check_in_date:
        raise ValueError("checkOutDate must be after checkInDate")
