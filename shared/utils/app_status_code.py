class AppStatusCode:
    # Success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    CREATED_SUCCESSFULLY = "101"
    UPDATED_SUCCESSFULLY = "102"

    # Input
    INVALID_INPUT = "200"
    REQUIRED_VALIDATION_ERROR = "201"
    DUPLICATE_ADD_ERROR = "202"

    # Authentication / authorization
    AUTHENTICATION_REQUIRED = "300"
    AUTHENTICATION_TOKEN_INVALID = "301"
    AUTHENTICATION_TOKEN_EXPIRED = "302"
    ACCESS_FORBIDDEN = "303"

    # Lookups
    RECORD_NOT_FOUND = "400"
    TEMPLATE_NOT_FOUND = "401"

    # Server side
    OPERATION_FAILED = "500"
    OPERATION_ERROR = "501"
    TEMPLATE_MALFORMED = "502"
