"""Prompt construction for the recommendation and personality analyses.

Both builders are pure: the same input always yields the same text. The
system prompts carry the output schema and the business rules the model is
asked to follow; the user prompts serialize the pet, its recent medical
history and the catalogs with their real IDs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from src.data.schemas import (
    AnalysisBundle,
    CatalogProduct,
    CatalogService,
    MedicalRecordSummary,
    PersonalityInput,
    PetProfile,
)

DEFAULT_MAX_RECORDS = 5
DEFAULT_TOP_FOOD = 5
DEFAULT_TOP_SERVICES = 3


@dataclass(frozen=True)
class PromptPair:
    """System and user instructions for one model request."""

    system: str
    user: str


RECOMMENDATION_SYSTEM_PROMPT = """# TailMates AI Pet Nutritionist & Care Advisor

Bạn là chuyên gia dinh dưỡng thú y và tư vấn chăm sóc thú cưng cho nền tảng TailMates Việt Nam.

## NHIỆM VỤ
1. Phân tích sức khỏe thú cưng dựa trên thông tin cung cấp
2. Tính toán các CHỈ SỐ SỨC KHỎE (Health Indices) với giá trị 0-100
3. Đánh giá độ PHÙ HỢP (Match Point 0-100) cho từng sản phẩm/dịch vụ
4. Giải thích LÝ DO bằng tiếng Việt, dễ hiểu cho người dùng

## QUY TẮC QUAN TRỌNG
- **Dị ứng**: Nếu thú cưng dị ứng với thành phần nào → sản phẩm chứa thành phần đó = 0 điểm
- **Loài**: Sản phẩm cho Chó không bao giờ gợi ý cho Mèo và ngược lại
- **Tuổi**: Kitten/Puppy food cho thú < 12 tháng, Senior cho > 84 tháng
- **Triệt sản**: Ưu tiên sản phẩm "Weight Management" nếu đã triệt sản
- **Tiêm phòng**: Nếu > 12 tháng tuổi mà chưa có lịch sử tiêm phòng → dịch vụ khám/tiêm phòng có Urgency = CRITICAL

## HEALTH INDICES CẦN TÍNH (chọn 4-8 chỉ số phù hợp nhất)
1. **Nhu cầu Protein** - Dựa trên tuổi, giống, hoạt động
2. **Kiểm soát Cân nặng** - So sánh với cân nặng chuẩn của giống
3. **Sức khỏe Da & Lông** - Dựa trên loại lông và ghi chú
4. **Sức khỏe Tiêu hóa** - Dựa trên lịch sử y tế
5. **Nhu cầu Vitamin** - Dựa trên tuổi và chế độ ăn
6. **Cần khám định kỳ** - Dựa trên lịch sử khám
7. **Sức khỏe Xương khớp** - Cho giống lớn hoặc senior
8. **Nhu cầu Năng lượng** - Dựa trên tuổi và hoạt động

## MATCH METRICS CHO THỨC ĂN
- species_match: Đúng loài = 100, sai = 0
- life_stage_fit: Đúng giai đoạn = 100, gần = 70, xa = 30
- allergy_safety: Không chứa allergen = 100, chứa = 0
- health_tag_match: % health tags phù hợp với indices
- nutritional_balance: Phù hợp nhu cầu protein/fat/fiber

## OUTPUT FORMAT
Trả về JSON với cấu trúc chính xác sau:
{
  "analysis": {
    "health_summary": "Tóm tắt sức khỏe bằng tiếng Việt, 2-3 câu",
    "weight_status": "NORMAL" | "UNDERWEIGHT" | "OVERWEIGHT",
    "activity_level": "LOW" | "MODERATE" | "HIGH",
    "nutritional_needs": {
      "protein": "HIGH" | "MEDIUM" | "LOW",
      "fat": "HIGH" | "MEDIUM" | "LOW",
      "fiber": "HIGH" | "MEDIUM" | "LOW",
      "specialDiet": "string hoặc null",
      "avoidIngredients": ["danh sách thành phần cần tránh"]
    },
    "health_indices": [
      {
        "label": "Tên chỉ số bằng tiếng Việt",
        "value": 0-100 (SỐ NGUYÊN),
        "status": "low" | "medium" | "high",
        "reason": "Giải thích ngắn gọn bằng tiếng Việt",
        "icon": "protein" | "heart" | "bone" | "stomach" | "vitamin" | "checkup" | "energy" | "fur"
      }
    ]
  },
  "food_recommendations": [
    {
      "product_id": "ID sản phẩm từ danh sách",
      "product_name": "Tên sản phẩm",
      "match_point": 0-100 (SỐ NGUYÊN),
      "metrics": {
        "species_match": 0-100,
        "life_stage_fit": 0-100,
        "allergy_safety": 0-100,
        "health_tag_match": 0-100,
        "nutritional_balance": 0-100
      },
      "reasoning": "Giải thích bằng tiếng Việt tại sao phù hợp"
    }
  ],
  "service_recommendations": [
    {
      "service_id": "ID dịch vụ từ danh sách",
      "service_name": "Tên dịch vụ",
      "match_point": 0-100 (SỐ NGUYÊN),
      "urgency": "LOW" | "MEDIUM" | "HIGH" | "CRITICAL",
      "urgency_reason": "Lý do mức độ khẩn cấp",
      "reasoning": "Giải thích bằng tiếng Việt"
    }
  ]
}

**LƯU Ý QUAN TRỌNG**:
- Các giá trị score/point (value, match_point, metrics) PHẢI là số nguyên (Integer), KHÔNG ĐƯỢC để dạng dải (như 0-100) hay chuỗi.
- Không bao giờ bịa đặt ID sản phẩm/dịch vụ. Chỉ dùng ID được cung cấp.
- Trả về JSON thuần túy, không kèm văn bản giải thích bên ngoài."""


PERSONALITY_SYSTEM_PROMPT = """# VAI TRÒ (ROLE)
Bạn là một chuyên gia thú y và nhà hành vi học động vật (Animal Behaviorist) với 20 năm kinh nghiệm. Nhiệm vụ của bạn là phân tích dữ liệu của thú cưng, từ đó đưa ra bản báo cáo chi tiết về tính cách, hướng dẫn chăm sóc và các cảnh báo sức khỏe quan trọng.

## YÊU CẦU ĐẦU RA
Hãy phân tích và trả về JSON theo cấu trúc 4 phần sau đây. Giọng văn thân thiện, chuyên nghiệp, dễ hiểu.

### Phần 1: Phân tích Tính cách & Hành vi (type, traits, behavior_explanation)
- type: Tên kiểu tính cách ngắn gọn (ví dụ: "Kẻ tinh nghịch năng động", "Người bảo vệ trung thành")
- traits: Mảng 3-5 tính cách đặc trưng
- behavior_explanation: Giải thích tại sao bé có hành vi đó (do gen của giống hay do độ tuổi?)

### Phần 2: Kiến thức & Đặc điểm Giống loài (breed_specs)
- appearance: 3 điểm đặc trưng về ngoại hình
- temperament: 3 điểm đặc trưng về tính cách giống
- exercise_minutes_per_day: Số phút vận động cần thiết mỗi ngày (SỐ NGUYÊN)
- shedding_level: Mức độ rụng lông ("LOW", "MEDIUM", "HIGH")
- grooming_needs: Mô tả nhu cầu chải chuốt

### Phần 3: Hướng dẫn Chăm sóc theo Độ tuổi (care_guide)
- nutrition: { meals_per_day, food_type, tips[] } - Chế độ ăn phù hợp độ tuổi
- medical: { vaccines[], notes[] } - Mũi tiêm cần thiết, lưu ý y tế
- training: { command, tips[] } - 1 bài tập/mệnh lệnh nên dạy ngay

### Phần 4: Cảnh báo & Lưu ý đặc biệt (warnings)
- genetic_diseases: Các bệnh di truyền thường gặp ở giống
- dangerous_foods: Thực phẩm nguy hiểm cho giống này
- environment_hazards: Môi trường gây nguy hiểm

## QUY TẮC QUAN TRỌNG
- Trả về JSON thuần túy, không markdown code block
- Tất cả text phải bằng tiếng Việt
- Thông tin phải chính xác theo khoa học thú y
- Tư vấn sát với độ tuổi hiện tại của bé"""


def format_vnd(amount: float) -> str:
    """Format a price the way vi-VN renders numbers: 1.234.567 (decimals after ',')."""
    whole = int(amount)
    text = f"{whole:,}".replace(",", ".")
    fraction = round(abs(amount - whole), 3)
    if fraction:
        text += "," + f"{fraction:.3f}"[2:].rstrip("0")
    return text


def format_visit_date(value: date | None) -> str:
    """Render a visit date as d/m/yyyy, or N/A when unknown."""
    if value is None:
        return "N/A"
    return f"{value.day}/{value.month}/{value.year}"


def _or(value: object, fallback: str) -> str:
    if value is None or value == "" or value == []:
        return fallback
    return str(value)


def _format_percent(value: float | None) -> str:
    if not value:
        return "?"
    return f"{value:g}"


def _pet_section(pet: PetProfile) -> str:
    allergies = ", ".join(pet.allergies) if pet.allergies else "Không có thông tin"
    weight = f"{pet.weight_kg:g}" if pet.weight_kg else "Không rõ"
    return "\n".join(
        [
            "## THÔNG TIN THÚ CƯNG",
            f"- Tên: {pet.name}",
            f"- Loài: {pet.species}",
            f"- Giống: {_or(pet.breed, 'Không rõ')}",
            f"- Tuổi: {pet.age_months} tháng "
            f"({pet.age_months // 12} năm {pet.age_months % 12} tháng)",
            f"- Cân nặng: {weight} kg",
            f"- Giới tính: {pet.gender}",
            f"- Đã triệt sản: {'Có' if pet.sterilized else 'Không'}",
            f"- Dị ứng: {allergies}",
            f"- Ghi chú từ chủ: {_or(pet.notes, 'Không có')}",
        ]
    )


def _medical_section(
    records: list[MedicalRecordSummary], heading: str, vaccine_label: str
) -> str:
    lines = [heading]
    if not records:
        lines.append("Chưa có lịch sử y tế nào được ghi nhận.")
        return "\n".join(lines)

    for i, record in enumerate(records, start=1):
        vaccines = ", ".join(record.vaccines) if record.vaccines else "Không có"
        lines.extend(
            [
                "",
                f"{i}. [{record.record_type}] Ngày: {format_visit_date(record.visit_date)}",
                f"   - Chẩn đoán: {record.diagnosis}",
                f"   - Điều trị: {_or(record.treatment, 'Không có')}",
                f"   - {vaccine_label}: {vaccines}",
            ]
        )
    return "\n".join(lines)


def _product_block(product: CatalogProduct) -> str:
    spec = product.specifications
    price = f"- Giá: {format_vnd(product.price)}đ"
    if product.sale_price:
        price += f" (Khuyến mãi: {format_vnd(product.sale_price)}đ)"

    if spec is None:
        return "\n".join(
            [
                f"[{product.id}] {product.name}",
                price,
                "- Loài phù hợp: Tất cả",
                "- Giai đoạn: Tất cả",
            ]
        )

    nutrition = spec.nutritional_info
    protein = _format_percent(nutrition.protein if nutrition else None)
    fat = _format_percent(nutrition.fat if nutrition else None)
    fiber = _format_percent(nutrition.fiber if nutrition else None)
    lines = [
        f"[{product.id}] {product.name}",
        price,
        f"- Loài phù hợp: {_or(spec.target_species, 'Tất cả')}",
        f"- Giai đoạn: {_or(spec.life_stage, 'Tất cả')}",
        f"- Kích cỡ giống: {_or(spec.breed_size, 'Tất cả')}",
        f"- Health Tags: {_or(', '.join(spec.health_tags), 'Không có')}",
        f"- Thành phần chính: {_or(spec.primary_protein_source, 'Không rõ')}",
    ]
    if spec.ingredients:
        lines.append(f"- Nguyên liệu: {', '.join(spec.ingredients)}")
    if spec.is_sterilized:
        lines.append("- Dành cho thú đã triệt sản: Có")
    lines.append(f"- Dinh dưỡng: Protein {protein}%, Fat {fat}%, Fiber {fiber}%")
    return "\n".join(lines)


def _service_block(service: CatalogService) -> str:
    return "\n".join(
        [
            f"[{service.id}] {service.name}",
            f"- Loại: {service.category}",
            f"- Giá: {format_vnd(service.price_min)}đ - {format_vnd(service.price_max)}đ",
        ]
    )


def _catalog_section(heading: str, blocks: list[str], empty: str) -> str:
    if not blocks:
        return f"{heading}\n{empty}"
    return heading + "\n\n" + "\n\n".join(blocks)


def build_recommendation_user_prompt(
    bundle: AnalysisBundle,
    max_records: int = DEFAULT_MAX_RECORDS,
    top_food: int = DEFAULT_TOP_FOOD,
    top_services: int = DEFAULT_TOP_SERVICES,
) -> str:
    """Serialize an AnalysisBundle into the user instruction.

    Medical records are taken in the order supplied (most recent first is
    the caller's responsibility) and truncated to ``max_records``.

    Args:
        bundle: Pet, medical history and catalogs for this request.
        max_records: Number of medical records to include.
        top_food: Number of food recommendations to request.
        top_services: Number of service recommendations to request.

    Returns:
        The user prompt text.
    """
    records = list(bundle.medical_records[:max_records])
    sections = [
        _pet_section(bundle.pet),
        _medical_section(
            records,
            f"## LỊCH SỬ Y TẾ ({len(records)} bản ghi gần nhất)",
            "Vaccine đã tiêm",
        ),
        _catalog_section(
            f"## DANH MỤC SẢN PHẨM THỨC ĂN ({len(bundle.products)} sản phẩm có sẵn)",
            [_product_block(p) for p in bundle.products],
            "Không có sản phẩm thức ăn nào.",
        ),
        _catalog_section(
            f"## DANH MỤC DỊCH VỤ ({len(bundle.services)} dịch vụ có sẵn)",
            [_service_block(s) for s in bundle.services],
            "Không có dịch vụ nào.",
        ),
        "\n".join(
            [
                "## YÊU CẦU",
                "Hãy phân tích sức khỏe thú cưng và gợi ý:",
                f"- TOP {top_food} sản phẩm thức ăn phù hợp nhất (nếu có đủ sản phẩm)",
                f"- TOP {top_services} dịch vụ cần thiết nhất (nếu có đủ dịch vụ)",
                "Chỉ sử dụng ID nằm trong ngoặc vuông [ ] ở danh mục phía trên.",
                "",
                "Trả về JSON theo đúng format đã quy định.",
            ]
        ),
    ]
    return "\n\n".join(sections)


def build_recommendation_prompts(
    bundle: AnalysisBundle,
    max_records: int = DEFAULT_MAX_RECORDS,
    top_food: int = DEFAULT_TOP_FOOD,
    top_services: int = DEFAULT_TOP_SERVICES,
) -> PromptPair:
    """Build the system and user prompts for a recommendation request."""
    return PromptPair(
        system=RECOMMENDATION_SYSTEM_PROMPT,
        user=build_recommendation_user_prompt(
            bundle, max_records, top_food, top_services
        ),
    )


def format_age(age_months: int) -> str:
    """Render an age as 'N tuổi M tháng', or just months when under a year."""
    years, months = divmod(age_months, 12)
    if years == 0:
        return f"{months} tháng"
    if months == 0:
        return f"{years} tuổi"
    return f"{years} tuổi {months} tháng"


def build_personality_user_prompt(
    data: PersonalityInput, max_records: int = DEFAULT_MAX_RECORDS
) -> str:
    """Serialize a pet and its recent history for the personality analysis."""
    pet = data.pet
    weight = f"{pet.weight_kg:g} kg" if pet.weight_kg else "Chưa cập nhật"
    allergies = ", ".join(pet.allergies) if pet.allergies else "Không có thông tin"
    gender = "Đực" if pet.gender.upper() == "MALE" else "Cái"

    profile = "\n".join(
        [
            "## DỮ LIỆU ĐẦU VÀO",
            f"- Loài vật: {pet.species}",
            f"- Giống (Breed): {_or(pet.breed, 'Không rõ giống')}",
            f"- Độ tuổi: {format_age(pet.age_months)} ({pet.age_months} tháng tuổi)",
            f"- Cân nặng: {weight}",
            f"- Giới tính: {gender}",
            f"- Đã triệt sản: {'Có' if pet.sterilized else 'Không'}",
            f"- Màu lông: {_or(pet.color, 'Chưa cập nhật')}",
            f"- Loại lông: {_or(pet.fur_type, 'Chưa cập nhật')}",
            f"- Dị ứng đã biết: {allergies}",
            f"- Đặc điểm/Thói quen nổi bật: {_or(pet.notes, 'Chưa có ghi chú')}",
        ]
    )
    history = _medical_section(
        list(data.medical_records[:max_records]), "## LỊCH SỬ Y TẾ", "Vaccine"
    )
    return "\n\n".join(
        [profile, history, "Hãy phân tích và trả về JSON theo format đã quy định."]
    )


def build_personality_prompts(
    data: PersonalityInput, max_records: int = DEFAULT_MAX_RECORDS
) -> PromptPair:
    """Build the system and user prompts for a personality analysis."""
    return PromptPair(
        system=PERSONALITY_SYSTEM_PROMPT,
        user=build_personality_user_prompt(data, max_records),
    )
