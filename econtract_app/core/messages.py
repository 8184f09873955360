# All user-facing strings (Japanese locale)
ERROR_MESSAGES = {
    "generic": "エラーが発生しました。もう一度お試しください。",
    "not_found": "指定されたリソースが見つかりませんでした。",
    "validation": "入力内容に誤りがあります。",
    "invalid_body": "リクエストボディが無効です",
    "file_missing": "ファイルが選択されていません",
    "file_too_large": "ファイルサイズが制限を超えています。",
    "invalid_image_type": "画像ファイル（JPEG、PNG、TIFF、BMP）のみ対応しています",
    "rate_limit": "リクエスト数が制限を超えました。しばらくお待ちください。",
    "contract_not_found": "契約書が見つかりませんでした。",
    "contract_id_required": "契約IDが必要です",
    "chat_input_required": "契約IDとメッセージが必要です",
    "chat_invalid_message": "有効なメッセージを入力してください",
    "chat_failed": "法務チャットの処理中にエラーが発生しました",
    "completed_not_editable": "完了済みの契約は編集できません",
    "completed_not_deletable": "完了済みの契約は削除できません",
    "invalid_transition": "契約ステータスをこの状態に変更することはできません",
    "parties_locked": "署名済みの契約の当事者は変更できません",
    "party_required": "署名者IDが必要です",
    "party_not_in_contract": "指定された署名者が契約に含まれていません",
    "party_already_signed": "この署名者は既に署名済みです",
    "party_signature_not_required": "この署名者の署名は不要です",
    "token_required": "署名トークンが必要です",
    "token_invalid": "無効な署名トークンです",
    "signature_expired": "署名リンクの有効期限が切れました。",
    "certificate_not_ready": "すべての署名が完了していないため証明書を発行できません",
    "certificate_not_issued": "証明書がまだ発行されていません",
    "template_not_found": "テンプレートが見つかりませんでした。",
    "template_required_clause": "必須条項は除外できません",
    "demo_only": "この操作はデモモードでのみ利用できます",
    "store_unavailable": "データベースエラーが発生しました",
    "ai_service_error": "AI分析サービスでエラーが発生しました。",
    "ocr_service_error": "OCR処理でエラーが発生しました。",
    "email_service_error": "メール送信でエラーが発生しました。",
    "pdf_service_error": "PDF生成でエラーが発生しました。",
}

SUCCESS_MESSAGES = {
    "contract_created": "契約書が作成されました。",
    "contract_updated": "契約書が更新されました。",
    "contract_cancelled": "契約がキャンセルされました",
    "contract_signed": "署名が完了しました。",
    "contract_sent": "署名依頼を送信しました。",
    "ai_analysis_complete": "AI分析が完了しました",
    "ocr_complete": "OCR処理が完了しました。",
    "certificate_issued": "証明書を生成しました",
    "certificate_exists": "証明書は既に生成済みです",
    "demo_seeded": "デモデータを読み込みました",
}

# Returned in place of an answer when the legal chat cannot complete.
CHAT_FALLBACK_RESPONSE = (
    "申し訳ございませんが、現在システムに問題が発生しています。"
    "重要な法的事項については、専門家にご相談いただくようお願いいたします。"
)

STATUS_LABELS = {
    "draft": "下書き",
    "pending_review": "レビュー待ち",
    "pending_signature": "署名待ち",
    "partially_signed": "一部署名済み",
    "completed": "完了",
    "cancelled": "キャンセル",
    "expired": "期限切れ",
}

TYPE_LABELS = {
    "service_agreement": "業務委託契約",
    "design_agreement": "デザイン業務委託契約",
    "nda": "秘密保持契約",
    "employment": "雇用契約",
    "sales": "売買契約",
    "lease": "賃貸借契約",
    "partnership": "パートナーシップ契約",
    "other": "その他",
}
