"""GoodBuyバリデーションエンジンのカスタム例外クラス。"""


class GoodBuyError(Exception):
    """GoodBuyの基底例外クラス。"""


class RuleNotFoundError(GoodBuyError):
    """指定されたバリデーションルールが見つからない場合の例外。"""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Validation rule not found: {rule_id}")
        self.rule_id = rule_id


class RuleDefinitionError(GoodBuyError):
    """宣言的ルール定義（YAML）が不正な場合の例外。"""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Invalid rule definition in {source}: {reason}")
        self.source = source
        self.reason = reason


class SnapshotParseError(GoodBuyError):
    """質問票スナップショットがスキーマに適合しない場合の例外。"""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Questionnaire snapshot could not be parsed: {detail}")
        self.detail = detail
