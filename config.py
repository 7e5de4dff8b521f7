"""Configuration settings for Dealership Commission Reports"""

# Company Information
COMPANY_NAME = "Dealership Commission Reports"

# Salesperson naming
HOUSE_SALESPERSON = "Key"  # Receives the dealership-level bonuses
UNASSIGNED_SALESPERSON = "Unassigned"

# Base commission: flat amount up to the limit, percentage above it
BASE_COMMISSION_FLAT = 100
BASE_COMMISSION_FLAT_LIMIT = 3000
BASE_COMMISSION_RATE = 0.05

# Weekly sales volume bonus (per deal above the threshold)
WEEKLY_BONUS_THRESHOLD = 5
WEEKLY_BONUS_PER_DEAL = 50

# Commission week runs Friday -> Thursday (Monday = 0)
COMMISSION_WEEK_START_WEEKDAY = 4

# Bonus week starts this many days before the commission week (the Monday)
BONUS_WEEK_OFFSET_DAYS = 4

# Collections bonus values offered for Key
COLLECTIONS_BONUS_OPTIONS = [0, 50, 100]

# Timezone used to decide which commission week is "current"
REPORT_TIMEZONE = "America/Chicago"

# Sale types counted towards the weekly sales bonus
BONUS_SALE_TYPES = ['sale', 'trade', 'trade-in', 'tradein']
NAME_CHANGE_SALE_TYPES = ['namechange', 'name-change']

# Excel styling
EXCEL_STYLES = {
    'header_bg_color': 'D3D3D3',  # Light gray
    'summary_bg_color': '00FFFF',  # Cyan
    'font_name': 'Arial',
    'font_size': 10
}
