DEPARTMENTS = (
    "CSE",
    "ECE",
    "EEE",
    "MECH",
    "CIVIL",
    "IT",
    "EIE",
    "ADMINISTRATION",
    "LIBRARY",
    "HOSTEL",
)

# Index is the zero-based month; "Y" is May and "U" June so that no two months share a letter.
UID_MONTH_CODES = ("J", "F", "M", "A", "Y", "U", "L", "G", "S", "O", "N", "D")

MIN_PASSWORD_LENGTH = 6
MAX_UID_LENGTH = 20

MAX_PHOTO_SIZE_BYTES = 5 * 1024 * 1024
# Content type -> stored file extension.
ALLOWED_PHOTO_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
VISITOR_PHOTO_FOLDER = "visitor-photos"

# Spreadsheet apps evaluate cells starting with these as formulas.
CSV_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")
