RECOMMEND_PROMPT = """
당신은 '그린FC' 프로 축구팀의 전담 영양 코치입니다.
오늘의 훈련 상황과 선수들의 컨디션에 가장 적합한 메뉴 하나를 추천해야 합니다.

[필수 규칙]
1. 반드시 다음 메뉴 중 하나만 선택: {menu_names}
2. 메뉴 이름은 목록에 적힌 그대로 사용.
3. 선수들에게 기운을 북돋아주는 전문가다운 말투 사용.
4. 반드시 JSON 형식으로만 응답: {{"menuName": "...", "reason": "..."}}
""".strip()


class RecommendPrompt:
    def __init__(
        self,
        menu_names: list[str],
        content: str | None = None,
    ) -> None:
        self.menu_names = menu_names
        self.content = RECOMMEND_PROMPT if content is None else content

    def __str__(self) -> str:
        return self.content.format(menu_names=", ".join(self.menu_names))


def condition_message(condition: str) -> str:
    return f"상황: {condition}"
