"""UI strings for the supported languages."""

from __future__ import annotations

from typing import Dict

LANGUAGES = ("en", "zh")
DEFAULT_LANGUAGE = "zh"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        # Idea intake
        "generateStoryIdeas": "Generate Story Ideas",
        "craftYourNarrative": "Craft your narrative by providing a few key details.",
        "storyDescription": "Story Description",
        "storyDescriptionPlaceholder": "e.g., A robot detective in a noir-style city...",
        "storyTheme": "Story Theme",
        "imageStyle": "Image Style",
        "referenceImage": "Reference Image",
        "uploadFile": "Upload a file",
        "dragAndDrop": "or drag and drop",
        "fileTypes": "PNG, JPG, GIF up to 10MB",
        "videoType": "Video Type",
        "infiniteLoop": "Infinite Loop",
        "storyBased": "Story-based",
        "videoLength": "Video Length",
        "seconds10": "10 seconds",
        "seconds30": "30 seconds",
        "seconds60": "60 seconds",
        "generate": "Generate",
        "errorStoryDescription": "Please provide a story description.",
        "errorInvalidImage": "Please upload a valid image file (PNG, JPG, GIF).",
        "errorFileSize": "File size should not exceed 10MB.",
        "errorFileRead": "Failed to read the image file.",
        "errorImageDimensions": "The image dimensions are too large. Please upload a smaller image.",
        "brainstorm": "Brainstorm",
        "brainstorming": "Brainstorming...",
        "brainstormError": "Failed to get suggestions. Please try again.",
        "errorAiInit": "Failed to initialize AI service. Set OPENAI_API_KEY in your environment or .env file.",
        "errorNoReferenceImage": "Please upload a reference image to continue.",
        "language": "Language",
        "hotVideoFinder": "Hot Video Finder",
        "trendAnalysisPlatform": "Trend Analysis Platform",
        # Prompt picker
        "promptSelectionTitle": "Prompt Selection",
        "scene": "Scene",
        "storyContent": "Story Content",
        "imagePrompt": "Image Prompt",
        "imageToVideoPrompt": "Image-to-Video Prompt",
        "version": "Version",
        "backToIdea": "Back to Idea",
        "previous": "Previous",
        "next": "Next",
        "viewOverview": "View Overview",
        "loadingMessage": "Generating for you, please wait...",
        "loadingSubMessage": "This might take a moment.",
        "errorTitle": "Error",
        "goBack": "Go Back",
        "errorStoryIdeaEmpty": "Story idea is empty, please go back to the previous step.",
        "errorPromptGeneration": "Failed to generate story and prompts, please check the format or try again later.",
        "errorNoScenes": "No story scenes were generated. Please go back and try again.",
        # Overview
        "newStory": "New Story",
        "promptOverview": "Prompt Overview",
        "imageGenerationModel": "Image Editing Model",
        "generateAll": "Generate All",
        "generating": "Generating...",
        "allGenerated": "All Generated",
        "downloadAll": "Download All",
        "videoPrompt": "Video Prompt",
        "actions": "Actions",
        "regenerate": "Regenerate",
        "changeImage": "Change Image",
        "editImage": "Edit Image",
        "selectImage": "Select",
        "selected": "Selected",
        "sequentialGenerate": "Sequential Generate",
        "sequentialGenerateTitle": "Sequential Generation",
        "sceneProgress": "Scene {current} of {total}",
        "selectAnImage": "Select an image to continue.",
        "confirmSelection": "Confirm & Next Scene",
        "confirmSelectionLast": "Confirm & Finish",
        "cancel": "Cancel",
        "errorImageGeneration": "Failed to generate image for Scene {scene}. Please try again.",
        "errorGeneration": "Generation failed. Please try again.",
        "errorGeneric": "Something went wrong.",
        # Image editor
        "imageEditor": "Image Editor",
        "backToOverview": "Back to Overview",
        "addPrompt": "Describe your edit",
        "promptPlaceholder": "Only change the area highlighted in translucent red and remove the red highlight in the result",
        "maskTools": "Mask Tools",
        "brushSize": "Brush Size",
        "draw": "Draw",
        "erase": "Erase",
        "clearMask": "Clear Mask",
        "strokePoints": "Stroke points (one x,y pair per line)",
        "canvasHint": "Click the image to add stroke points, then press Add Stroke.",
        "addStroke": "Add Stroke",
        "generatingEdits": "Generating edits...",
        "editResults": "Edit Results",
        "selectOne": "Select one result to continue editing or to finish.",
        "useAndContinue": "Use & Continue Editing",
        "useAndFinish": "Use & Finish",
        "errorEditPrompt": "Please enter a prompt to describe your edit.",
        "errorStrokePoints": "Stroke points must be x,y pairs of numbers.",
    },
    "zh": {
        # Idea intake
        "generateStoryIdeas": "產生故事點子",
        "craftYourNarrative": "請提供一些關鍵細節來塑造您的故事。",
        "storyDescription": "故事描述",
        "storyDescriptionPlaceholder": "例如：一個在黑色風格城市中的機器人偵探...",
        "storyTheme": "故事主題",
        "imageStyle": "圖片風格",
        "referenceImage": "原始參考圖",
        "uploadFile": "上傳檔案",
        "dragAndDrop": "或拖放檔案",
        "fileTypes": "PNG, JPG, GIF (最大 10MB)",
        "videoType": "影片類型",
        "infiniteLoop": "無限循環",
        "storyBased": "故事性",
        "videoLength": "影片長度",
        "seconds10": "10 秒",
        "seconds30": "30 秒",
        "seconds60": "60 秒",
        "generate": "產生",
        "errorStoryDescription": "請提供故事描述。",
        "errorInvalidImage": "請上傳有效的圖片檔案 (PNG, JPG, GIF)。",
        "errorFileSize": "檔案大小不應超過 10MB。",
        "errorFileRead": "讀取圖片檔案失敗。",
        "errorImageDimensions": "圖片尺寸過大，請上傳較小的圖片。",
        "brainstorm": "腦力激盪",
        "brainstorming": "腦力激盪中...",
        "brainstormError": "無法獲取建議，請重試。",
        "errorAiInit": "無法初始化 AI 服務。請在環境變數或 .env 檔中設定 OPENAI_API_KEY。",
        "errorNoReferenceImage": "請上傳參考圖片以繼續。",
        "language": "語言",
        "hotVideoFinder": "熱門影片搜尋器",
        "trendAnalysisPlatform": "趨勢追蹤分析平台",
        # Prompt picker
        "promptSelectionTitle": "Prompt 選擇",
        "scene": "場景",
        "storyContent": "故事內容",
        "imagePrompt": "圖片 Prompt",
        "imageToVideoPrompt": "圖轉影 Prompt",
        "version": "版本",
        "backToIdea": "返回點子頁",
        "previous": "上一步",
        "next": "下一步",
        "viewOverview": "查看總覽",
        "loadingMessage": "正在為您生成，請稍候...",
        "loadingSubMessage": "這可能需要一點時間。",
        "errorTitle": "錯誤",
        "goBack": "返回",
        "errorStoryIdeaEmpty": "故事點子為空，請返回上一步。",
        "errorPromptGeneration": "故事與提示生成失敗，請檢查格式或稍後再試。",
        "errorNoScenes": "未能生成任何故事場景，請返回重試。",
        # Overview
        "newStory": "新故事",
        "promptOverview": "Prompt 總覽",
        "imageGenerationModel": "圖片編輯模型",
        "generateAll": "全部生成",
        "generating": "生成中...",
        "allGenerated": "已全部生成",
        "downloadAll": "全部下載",
        "videoPrompt": "影片 Prompt",
        "actions": "操作",
        "regenerate": "重新產生",
        "changeImage": "更換圖片",
        "editImage": "編輯圖片",
        "selectImage": "選擇",
        "selected": "已選擇",
        "sequentialGenerate": "逐一生成",
        "sequentialGenerateTitle": "逐一生成",
        "sceneProgress": "場景 {current} / {total}",
        "selectAnImage": "請選擇一張圖片以繼續。",
        "confirmSelection": "確認並前往下一個場景",
        "confirmSelectionLast": "確認並完成",
        "cancel": "取消",
        "errorImageGeneration": "場景 {scene} 的圖片生成失敗，請重試。",
        "errorGeneration": "生成失敗，請重試。",
        "errorGeneric": "發生錯誤。",
        # Image editor
        "imageEditor": "圖片編輯器",
        "backToOverview": "返回總覽",
        "addPrompt": "描述您的編輯",
        "promptPlaceholder": "只修改以半透明紅色標示的區域，並在結果中移除紅色標示",
        "maskTools": "遮罩工具",
        "brushSize": "筆刷大小",
        "draw": "繪製",
        "erase": "擦除",
        "clearMask": "清除遮罩",
        "strokePoints": "筆畫座標（每行一組 x,y）",
        "canvasHint": "點擊圖片以加入筆畫座標，再按下加入筆畫。",
        "addStroke": "加入筆畫",
        "generatingEdits": "正在生成編輯結果...",
        "editResults": "編輯結果",
        "selectOne": "選擇一個結果以繼續編輯或完成。",
        "useAndContinue": "使用並繼續編輯",
        "useAndFinish": "使用並完成",
        "errorEditPrompt": "請輸入描述編輯內容的提示。",
        "errorStrokePoints": "筆畫座標必須是數字組成的 x,y。",
    },
}


def translate(language: str, key: str, **params: object) -> str:
    """Look up ``key`` for ``language``, falling back to English, then the key."""
    table = TRANSLATIONS.get(language) or TRANSLATIONS["en"]
    text = table.get(key) or TRANSLATIONS["en"].get(key) or key
    if params:
        text = text.format(**params)
    return text
