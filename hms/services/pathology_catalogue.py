"""Pathology test catalogue: code, display name, category and price (BDT)."""
from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple


class CatalogueTest(NamedTuple):
    code: str
    name: str
    category: str
    price: Decimal


def _t(code, name, category, price):
    return CatalogueTest(code, name, category, Decimal(price))


PATHOLOGY_TESTS = (
    _t('TC-DC-HB-ESR', 'TC,DC,HB%,ESR (Blood CP)', 'Hematology', 200),
    _t('PROTHROMBIN', 'Prothombin Time', 'Hematology', 1000),
    _t('HB', 'HB%', 'Hematology', 200),
    _t('BT-CT', 'BT, CT', 'Hematology', 350),
    _t('CE', 'CE (Circulating Eosin Phil)', 'Hematology', 200),
    _t('PLATELET-COUNT', 'Platelet Count', 'Hematology', 200),
    _t('BLOOD-GROUP-RH', 'Blood Group & Rh Factor', 'Hematology', 100),
    _t('CROSS-MATCH', 'Cross Match (Screening Test)', 'Hematology', 1000),
    _t('CBC', 'CBC', 'Hematology', 200),
    _t('TOTAL-EOSINOPHIL', 'Total Esonophil Count', 'Hematology', 300),
    _t('RBS', 'RBS (Random Blood Sugar)', 'Biochemistry', 100),
    _t('RBS-CUS', 'RBS (Random Blood Sugar) with CUS', 'Biochemistry', 200),
    _t('FBS', 'Fasting Blood Sugar', 'Biochemistry', 100),
    _t('2HABF', '2 Hours After Breakfast (2HABF)', 'Biochemistry', 100),
    _t('2HABF-CUS', '2 Hours After Breakfast (2HABF) with CUS', 'Biochemistry', 200),
    _t('2H-75GM', '2 Hours After 75gm Glucose Drink', 'Biochemistry', 100),
    _t('2H-75GM-CUS', '2 Hours After 75gm Glucose Drink with CUS', 'Biochemistry', 200),
    _t('OGTT', 'OGTT', 'Biochemistry', 300),
    _t('LIPID-PROFILE', 'Lipid Profile', 'Biochemistry', 1000),
    _t('HBA1C', 'HbA1C', 'Diabetes Monitoring', 1000),
    _t('ICT-MALARIA', 'ICT Malaria', 'Infectious Disease', 600),
    _t('MP', 'MP (Malaria Parasite)', 'Infectious Disease', 200),
    _t('ICT-TB', 'ICT for TB', 'Infectious Disease', 600),
    _t('ICT-KALA-AZAR', 'ICT for Kala-Azar (Ag/Ab)', 'Infectious Disease', 800),
    _t('ANTI-HIV', 'Anti HIV (ICT)', 'Infectious Disease', 700),
    _t('WIDAL', 'Widal Test', 'Infectious Disease', 500),
    _t('ASO', 'ASO Titre', 'Immunology', 500),
    _t('CRP', 'CRP', 'Immunology', 500),
    _t('RA-TEST', 'R.A. Test', 'Immunology', 500),
    _t('RA-TURBIDIMETRIC', 'R.A. Test (Turbidimetric)', 'Immunology', 600),
    _t('TPHA', 'TPHA', 'Serology', 500),
    _t('VDRL', 'VDRL', 'Serology', 300),
    _t('HBSAG', 'HBsAg', 'Serology', 500),
    _t('HBSAG-ELISA', 'HBsAg (Ellsa)', 'Serology', 1200),
    _t('HCV', 'HCV', 'Serology', 600),
    _t('HPV-DNA', 'HPV DNA Test', 'Serology', 3000),
    _t('S-BILIRUBIN', 'S. Bilirubin', 'Liver Function', 250),
    _t('SGPT', 'SGPT (ALT)', 'Liver Function', 400),
    _t('SGOT', 'SGOT (AST)', 'Liver Function', 400),
    _t('S-ALBUMIN', 'S.Albumin', 'Liver Function', 500),
    _t('S-ALKALINE-PHOSPHATASE', 'S. Alkaline Phosphatase', 'Liver Function', 500),
    _t('S-CREATININE', 'Serum Creatinine', 'Kidney Function', 400),
    _t('S-UREA', 'Serum Urea', 'Kidney Function', 400),
    _t('BLOOD-UREA', 'Blood Urea', 'Kidney Function', 400),
    _t('S-URIC-ACID', 'Serum Uric Acid', 'Kidney Function', 500),
    _t('S-AMYLASE', 'Serum Amylase', 'Enzymes', 1000),
    _t('ELECTROLYTE', 'Electrolyte', 'Electrolytes', 1000),
    _t('FT3', 'Free Trilodothyorine (FT3)', 'Thyroid Function', 1000),
    _t('FT4', 'Free Thyroxine (FT4)', 'Thyroid Function', 1000),
    _t('T3-T4-TSH', 'T3, T4 & TSH', 'Thyroid Function', 2400),
    _t('TSH', 'TSH', 'Thyroid Function', 900),
    _t('LH', 'LH', 'Hormones', 1200),
    _t('FSH', 'FSH', 'Hormones', 1200),
    _t('PROLACTIN', 'Prolactin', 'Hormones', 1200),
    _t('TESTOSTERONE', 'Testosterone', 'Hormones', 1200),
    _t('OESTROGEN', 'Oestrogen', 'Hormones', 1200),
    _t('AMH', 'AMH', 'Hormones', 3000),
    _t('CA-125', 'CA-125', 'Tumor Markers', 1200),
    _t('BETA-HCG', 'Beta HCG', 'Tumor Markers', 1200),
    _t('CEA', 'CEA', 'Tumor Markers', 1200),
    _t('CA-19-9', 'C-A 19-9', 'Tumor Markers', 1200),
    _t('AFP', 'α-Fetoprotein', 'Tumor Markers', 1200),
    _t('URINE-RE', 'Urine R/E', 'Urinalysis', 200),
    _t('URINE-CS', 'Urine for C/S', 'Urinalysis', 1000),
    _t('RA-TEST-URINE', 'R/A test', 'Urinalysis', 200),
    _t('HIGH-VAG-SWAB', 'High Vag Swab C/S', 'Microbiology', 1000),
    _t('SEMEN-CS', 'Semen C/S', 'Microbiology', 1000),
    _t('SEMEN-ANALYSIS', 'Semen Analysis', 'Microbiology', 600),
    _t('PREGNANCY', 'Pregnancy', 'Pregnancy', 250),
    _t('ECG', 'ECG', 'Cardiology', 300),
    _t('COLONOSCOPY', 'Colonoscopy', 'Endoscopy', 5000),
    _t('USG-WHOLE-ABDOMEN', 'Whole Abdomen', 'Ultrasound', 1000),
    _t('USG-LOWER-ABDOMEN', 'Lower Abdomen', 'Ultrasound', 800),
    _t('USG-HBS-LIVER-GB', 'HBS/Liver & Gall Bladder', 'Ultrasound', 900),
    _t('USG-PELVIC', 'Pelvic Organs', 'Ultrasound', 900),
    _t('USG-PREGNANCY', 'Pregnancy Profile', 'Ultrasound', 900),
    _t('USG-KUB', 'Kidney & Urinary Bladder (KUB)', 'Ultrasound', 900),
    _t('USG-BIOPHYSICAL', 'Biophysical Profile', 'Ultrasound', 1100),
    _t('USG-BREAST-SINGLE', 'Breast', 'Ultrasound', 1000),
    _t('USG-BREAST-BOTH', 'Breast (Both)', 'Ultrasound', 2000),
    _t('USG-4D-DUPLEX', 'Color Duplex-4D (Right/Left)', 'Ultrasound', 2000),
    _t('TVS', 'TVS', 'Ultrasound', 2000),
    _t('PS', 'P/s', 'Other', 500),
    _t('PS-EXAM', 'Ps Exam', 'Other', 500),
    _t('VITAMIN-D', 'Vitamin D (25-OH Vit-D Total)', 'Vitamins', 2200),
)

BY_CODE = {t.code: t for t in PATHOLOGY_TESTS}
CATEGORIES = sorted({t.category for t in PATHOLOGY_TESTS})


def get_test(code: str) -> CatalogueTest | None:
    return BY_CODE.get(code)


def unknown_codes(codes) -> list[str]:
    return [c for c in codes if c not in BY_CODE]


def total_price(codes) -> Decimal:
    return sum((BY_CODE[c].price for c in codes if c in BY_CODE), Decimal('0'))


def search_tests(*, category: str | None = None, search: str | None = None) -> list[dict]:
    needle = (search or '').strip().lower()
    rows = []
    for t in PATHOLOGY_TESTS:
        if category and t.category != category:
            continue
        if needle and needle not in t.name.lower() and needle not in t.code.lower():
            continue
        rows.append({'code': t.code, 'name': t.name, 'category': t.category, 'price': float(t.price)})
    return rows
