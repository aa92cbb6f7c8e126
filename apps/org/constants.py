ASN = "ASN"
NON_ASN = "Non ASN"
CATEGORIES = [ASN, NON_ASN]


def category_from_kriteria(kriteria_asn) -> str:
    # Only the literal "Non ASN" marks a non civil servant; null and anything else is ASN.
    return NON_ASN if kriteria_asn == NON_ASN else ASN
