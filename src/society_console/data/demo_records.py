"""
Demo records for the Society Console.

Records are stored exactly as the backend returns them (camelCase JSON
objects) so the demo gateway exercises the same decoding path as the live
one. Keys of DEMO_RECORDS are the first path segment of each resource's
endpoints.
"""

from typing import Any

RESOURCE_ID_KEYS: dict[str, str] = {
    "society": "societyId",
    "apartment": "apartmentId",
    "flat": "flatId",
    "meter": "meterId",
    "meterreading": "meterReadingId",
    "unitcharge": "unitChargeId",
    "maintenancegroup": "maintenanceGroupId",
    "maintenancecomponent": "maintenanceComponentId",
    "maintenancegroupcomponent": "maintenanceGroupComponentId",
    "flatmaintenance": "flatMaintenanceId",
    "expensecategory": "expenseCategoryId",
    "extraexpense": "extraExpenseid",
}

SOCIETIES: list[dict[str, Any]] = [
    {
        "societyId": 1,
        "societyName": "Green Meadows",
        "address": "14 Lake View Road",
        "city": "Pune",
        "pinCode": "411045",
        "societyType": "Residential",
        "contactPerson": "Anil Deshmukh",
        "contactNumber": "9822012345",
        "email": "office@greenmeadows.example",
        "registrationNumber": "PNA/HSG/1021",
        "hasClubhouse": True,
        "hasSwimmingPool": False,
    },
    {
        "societyId": 2,
        "societyName": "Silver Oaks",
        "address": "3 Ring Road",
        "city": "Nagpur",
        "pinCode": "440022",
        "societyType": "Mixed",
        "contactPerson": "Meera Kulkarni",
        "contactNumber": "9890054321",
        "email": "admin@silveroaks.example",
        "registrationNumber": "NGP/HSG/0088",
        "hasClubhouse": True,
        "hasSwimmingPool": True,
    },
]

APARTMENTS: list[dict[str, Any]] = [
    {
        "apartmentId": 1,
        "societyId": 1,
        "apartmentName": "Tower A",
        "blockName": "A",
        "constructionYear": 2012,
        "buildingType": "High-rise",
        "totalFloors": 12,
        "totalFlats": 48,
        "hasLift": True,
        "hasGenerator": True,
        "caretakerName": "Ramesh",
        "caretakerPhone": "9000011111",
    },
    {
        "apartmentId": 2,
        "societyId": 1,
        "apartmentName": "Tower B",
        "blockName": "B",
        "constructionYear": 2014,
        "buildingType": "High-rise",
        "totalFloors": 10,
        "totalFlats": 40,
        "hasLift": True,
        "hasGenerator": False,
        "caretakerName": "Suresh",
        "caretakerPhone": "9000022222",
    },
    {
        "apartmentId": 3,
        "societyId": 2,
        "apartmentName": "Oak Residency",
        "blockName": None,
        "constructionYear": 2018,
        "buildingType": "Low-rise",
        "totalFloors": 4,
        "totalFlats": 16,
        "hasLift": False,
        "hasGenerator": True,
        "caretakerName": None,
        "caretakerPhone": None,
    },
]

FLATS: list[dict[str, Any]] = [
    {"flatId": 1, "apartmentId": 1, "flatNumber": "A-101", "floorNumber": 1, "flatType": "2BHK", "superBuiltUpArea": 1050.5, "carParkingSlots": 1, "isRented": False, "isFurnished": True, "hasGasPipeline": True, "isActive": True},
    {"flatId": 2, "apartmentId": 1, "flatNumber": "A-102", "floorNumber": 1, "flatType": "3BHK", "superBuiltUpArea": 1420, "carParkingSlots": 2, "isRented": True, "isFurnished": False, "hasGasPipeline": True, "isActive": True},
    {"flatId": 3, "apartmentId": 1, "flatNumber": "A-201", "floorNumber": 2, "flatType": "2BHK", "superBuiltUpArea": 1050.5, "carParkingSlots": 1, "isRented": False, "isFurnished": False, "hasGasPipeline": False, "isActive": False},
    {"flatId": 4, "apartmentId": 2, "flatNumber": "B-101", "floorNumber": 1, "flatType": "1BHK", "superBuiltUpArea": 640, "carParkingSlots": 0, "isRented": True, "isFurnished": True, "hasGasPipeline": False, "isActive": True},
    {"flatId": 5, "apartmentId": 2, "flatNumber": "B-301", "floorNumber": 3, "flatType": "3BHK", "superBuiltUpArea": 1500, "carParkingSlots": 2, "isRented": False, "isFurnished": True, "hasGasPipeline": True, "isActive": True},
    {"flatId": 6, "apartmentId": 3, "flatNumber": "G-1", "floorNumber": 0, "flatType": "2BHK", "superBuiltUpArea": 980, "carParkingSlots": 1, "isRented": False, "isFurnished": False, "hasGasPipeline": True, "isActive": True},
]

METERS: list[dict[str, Any]] = [
    {"meterId": 1, "apartmentId": 1, "flatId": None, "meterNumber": "EM-A-COMMON", "utilityType": "Electricity", "meterScope": "Apartment", "installationDate": "2012-04-01", "isSmartMeter": False, "readingUnit": "kWh", "isActive": True},
    {"meterId": 2, "apartmentId": 1, "flatId": 1, "meterNumber": "EM-A-101", "utilityType": "Electricity", "meterScope": "Flat", "installationDate": "2015-06-10", "isSmartMeter": True, "readingUnit": "kWh", "isActive": True},
    {"meterId": 3, "apartmentId": 2, "flatId": 4, "meterNumber": "WM-B-101", "utilityType": "Water", "meterScope": "Flat", "installationDate": "2016-01-20", "isSmartMeter": False, "readingUnit": "KL", "isActive": True},
    {"meterId": 4, "apartmentId": 3, "flatId": None, "meterNumber": "EM-OAK-1", "utilityType": "Electricity", "meterScope": "Apartment", "installationDate": "2018-09-15", "isSmartMeter": True, "readingUnit": "kWh", "isActive": False},
]

METER_READINGS: list[dict[str, Any]] = [
    {
        "meterReadingId": n,
        "meterId": 1 + (n % 3),
        "readingDate": f"2024-{month:02d}-{day:02d}",
        "readingValue": 1200 + n * 85.5,
        "isEstimated": n % 4 == 0,
        "readingTypeId": 1 if n % 4 else 2,
        "notes": None,
        "isActive": True,
    }
    for n, (month, day) in enumerate(
        [(1, 5), (1, 20), (2, 3), (2, 18), (3, 6), (3, 21), (4, 2), (4, 25), (5, 8), (5, 30), (6, 5), (6, 8)],
        start=1,
    )
]

READING_TYPES: list[dict[str, Any]] = [
    {"readingTypeId": 1, "readingTypeName": "Actual"},
    {"readingTypeId": 2, "readingTypeName": "Estimated"},
]

UNIT_CHARGES: list[dict[str, Any]] = [
    {"unitChargeId": 1, "effectiveFrom": "2024-04-01", "effectiveTo": "2024-09-30", "chargePerUnit": 7.25, "currencyId": 1, "rateTypeId": 1, "minUnit": 0, "maxUnit": 100, "threshold": None, "subsidizedFlag": True, "applicableMonthFrom": 3, "applicableMonthTo": 9, "isActive": True},
    {"unitChargeId": 2, "effectiveFrom": "2024-04-01", "effectiveTo": "2024-09-30", "chargePerUnit": 9.5, "currencyId": 1, "rateTypeId": 2, "minUnit": 101, "maxUnit": 300, "threshold": 250, "subsidizedFlag": False, "applicableMonthFrom": 3, "applicableMonthTo": 9, "isActive": True},
    {"unitChargeId": 3, "effectiveFrom": "2023-10-01", "effectiveTo": "2024-03-31", "chargePerUnit": 6.8, "currencyId": 1, "rateTypeId": 1, "minUnit": 0, "maxUnit": 100, "threshold": None, "subsidizedFlag": True, "applicableMonthFrom": 9, "applicableMonthTo": 3, "isActive": False},
]

MAINTENANCE_GROUPS: list[dict[str, Any]] = [
    {"maintenanceGroupId": 1, "apartmentId": 1, "groupName": "Tower A 2024-25", "effectiveFrom": "2024-04-01", "effectiveTo": "2025-03-31", "totalCharge": 3500, "isActive": True},
    {"maintenanceGroupId": 2, "apartmentId": 3, "groupName": "Oak Standard", "effectiveFrom": "2024-01-01", "effectiveTo": None, "totalCharge": 2200, "isActive": True},
]

MAINTENANCE_COMPONENTS: list[dict[str, Any]] = [
    {"maintenanceComponentId": 1, "componentName": "Security", "description": "Round-the-clock guards", "isActive": True, "isDeprecated": False},
    {"maintenanceComponentId": 2, "componentName": "Housekeeping", "description": "Common area cleaning", "isActive": True, "isDeprecated": False},
    {"maintenanceComponentId": 3, "componentName": "Lift AMC", "description": "Annual lift maintenance", "isActive": True, "isDeprecated": False},
    {"maintenanceComponentId": 4, "componentName": "Diesel", "description": "Generator fuel", "isActive": False, "isDeprecated": True},
]

GROUP_COMPONENTS: list[dict[str, Any]] = [
    {"maintenanceGroupComponentId": 1, "maintenanceGroupId": 1, "maintenanceComponentId": 1, "amount": 1500, "isActive": True, "componentName": "Security"},
    {"maintenanceGroupComponentId": 2, "maintenanceGroupId": 1, "maintenanceComponentId": 2, "amount": 1200, "isActive": True, "componentName": "Housekeeping"},
    {"maintenanceGroupComponentId": 3, "maintenanceGroupId": 1, "maintenanceComponentId": 3, "amount": 800, "isActive": True, "componentName": "Lift AMC"},
    {"maintenanceGroupComponentId": 4, "maintenanceGroupId": 2, "maintenanceComponentId": 1, "amount": 1400, "isActive": True, "componentName": "Security"},
    {"maintenanceGroupComponentId": 5, "maintenanceGroupId": 2, "maintenanceComponentId": 4, "amount": 600, "isActive": False, "componentName": "Diesel"},
]

FLAT_MAINTENANCE: list[dict[str, Any]] = [
    {"flatMaintenanceId": 1, "flatId": 1, "maintenanceGroupId": 1, "effectiveFrom": "2024-04-01", "effectiveTo": "2025-03-31", "isActive": True},
    {"flatMaintenanceId": 2, "flatId": 2, "maintenanceGroupId": 1, "effectiveFrom": "2024-04-01", "effectiveTo": None, "isActive": True},
    {"flatMaintenanceId": 3, "flatId": 6, "maintenanceGroupId": 2, "effectiveFrom": "2024-01-01", "effectiveTo": None, "isActive": True},
]

EXPENSE_CATEGORIES: list[dict[str, Any]] = [
    {"expenseCategoryId": 1, "categoryName": "Repairs", "description": "Plumbing, electrical and civil work", "isActive": True},
    {"expenseCategoryId": 2, "categoryName": "Events", "description": "Festival and society functions", "isActive": True},
    {"expenseCategoryId": 3, "categoryName": "Legal", "description": None, "isActive": False},
]

# The backend spells this id key "extraExpenseid" and sends the month as "monthYear"
EXTRA_EXPENSES: list[dict[str, Any]] = [
    {"extraExpenseid": 1, "apartmentId": 1, "expenseCategoryId": 1, "flatId": None, "monthYear": "2024-05-01T00:00:00", "expenseAmount": 12500, "expenseDescription": "Terrace waterproofing", "isShared": True, "isActive": True},
    {"extraExpenseid": 2, "apartmentId": 1, "expenseCategoryId": 1, "flatId": 2, "monthYear": "2024-06-01T00:00:00", "expenseAmount": 1800.75, "expenseDescription": "Bathroom leak", "isShared": False, "isActive": True},
    {"extraExpenseid": 3, "apartmentId": 3, "expenseCategoryId": 2, "flatId": None, "monthYear": "2024-03-01T00:00:00", "expenseAmount": 9000, "expenseDescription": "Holi celebration", "isShared": True, "isActive": True},
]

DEMO_RECORDS: dict[str, list[dict[str, Any]]] = {
    "society": SOCIETIES,
    "apartment": APARTMENTS,
    "flat": FLATS,
    "meter": METERS,
    "meterreading": METER_READINGS,
    "unitcharge": UNIT_CHARGES,
    "maintenancegroup": MAINTENANCE_GROUPS,
    "maintenancecomponent": MAINTENANCE_COMPONENTS,
    "maintenancegroupcomponent": GROUP_COMPONENTS,
    "flatmaintenance": FLAT_MAINTENANCE,
    "expensecategory": EXPENSE_CATEGORIES,
    "extraexpense": EXTRA_EXPENSES,
}

# Auxiliary list endpoints that do not return the resource's own records
DEMO_LISTS: dict[str, list[dict[str, Any]]] = {
    "/meterreading/Get-All-ReadingTypes": READING_TYPES,
}
